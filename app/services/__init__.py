"""
                        Services Module

Business logic, each backend behind a Mock/Real strategy pair.

Services:
    - store: MongoDB document store (in-memory in development)
    - payment: Stripe payment intents (mock in development)
    - resources: per-entity CRUD handlers
    - checkout: payment orchestration
    - analytics: dashboard aggregations
"""
