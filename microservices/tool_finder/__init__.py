"""AI tool finder microservice."""
