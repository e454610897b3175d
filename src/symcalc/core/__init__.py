"""Core data structures: atoms, trees, evaluators and differentiation."""
