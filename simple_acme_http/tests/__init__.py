"""Unit tests and testing tools for the simple_acme_http package."""

TEST_DOMAINS = ["example.com", "www.example.com"]
TEST_EMAIL = "admin@example.com"
TEST_DIRECTORY = "https://acme.test/directory"
