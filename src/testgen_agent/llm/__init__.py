"""Provider contract, response parsing and the provider registry."""
