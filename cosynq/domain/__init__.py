"""Pure domain rules shared by services and models."""
