"""
Repositories: data access objects over the SQLAlchemy session.

Repositories flush but never commit; services own transactions.
"""
