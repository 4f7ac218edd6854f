"""
Core package providing the state machine building blocks.

Architecture:
- State and event value types
- Transition rules and lifecycle hooks
- Declaration DSL and the machine controller

Design Patterns:
- Builder Pattern for the declared state tree
- Observer Pattern for committed states
- Chain of Responsibility for ancestor rule lookup
"""
