"""User feedback submitted through the contact form."""
