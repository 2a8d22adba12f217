"""HTTP API for shopbridge."""
