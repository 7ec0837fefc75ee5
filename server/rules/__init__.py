"""
Import-order rules package.

Rules are discovered by engine.registry.discover_rules(["rules"]), which
imports every module in this package and registers the entries of its
module-level RULES list.

To add a rule:
1. Create a module in this directory (e.g., imports_something.py)
2. Define a class with `meta`, `requires` and `visit(ctx)`
3. End the module with `RULES = [MyRule()]`
"""
