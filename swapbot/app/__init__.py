# Application entry points: configuration loading and CLI
