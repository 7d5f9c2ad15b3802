"""
Restaurant and review data layer.

Responsibilities:
- Compose restaurant read queries from optional filters (category, city, price, sort).
- Add reviews and update a restaurant's rating statistics in one transaction.
- Fetch and subscribe to restaurants and their reviews.
- Seed sample restaurants and reviews.
"""
