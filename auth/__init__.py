"""
auth — User authentication module.

Provides:
  • Bearer token creation & verification (HS256 JWT)
  • Password hashing (bcrypt)
  • Register / Login API routes
  • ``get_current_identity`` FastAPI dependency with required/disabled modes
"""
