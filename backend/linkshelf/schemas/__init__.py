"""Pydantic schemas: domain shapes shared by backends, routes and the client."""
