"""
Real Estate Reservations API package.
"""
