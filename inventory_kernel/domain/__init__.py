"""Pure domain layer: value objects, state machines and projections.  Zero I/O."""
