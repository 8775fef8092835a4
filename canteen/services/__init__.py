"""
                        Services Module

Storefront logic and the external collaborators it talks to.
Collaborators follow the hybrid pattern: each has an in-process
implementation (development) and a real one (staging/production).

Services:
    - pricing: discounted prices and checkout totals
    - cart: per-session cart
    - catalog: menu views
    - orders: checkout and order history
    - session: session contexts and their registry
    - records: record store (in-memory / SQL)
    - identity: sign-in (mock / hosted auth API)
"""
