"""Service layer: backends, cascade rules and view stores."""
