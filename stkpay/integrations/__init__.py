"""
Integrations layer - clients for external systems (payment gateway)

Flows never call external APIs directly; they go through a PaymentGateway
built once by the application factory.
"""
