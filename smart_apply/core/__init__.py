# Core package: import modules directly to avoid circular imports
