"""Sample package analyzed by the symnav test-suite."""
