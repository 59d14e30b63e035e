"""Python client for the portfolio contact form."""
