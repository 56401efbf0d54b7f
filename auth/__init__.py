"""
auth — User authentication module.

Provides:
  • ``AuthService`` — registration, login and user listing
  • Credential store contract + in-memory implementation
  • Password hashing (bcrypt, tunable work factor)
  • JWT signing & verification (python-jose)
  • Register / Login / status API routes
"""
