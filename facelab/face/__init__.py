"""Face model lifecycle building blocks (variant/engine/dataset/normalizer/lifecycle).

`ModelLifecycleManager` is the entry point; the other modules are small helpers it
composes and are importable on their own for tests and tooling.
"""
