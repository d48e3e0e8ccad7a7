"""
Use Cases Package.

Each use case follows the layered architecture pattern defined in core/:
- domain/: Pure business logic (models, policies, services)
- cosmos_client.py: Data access for the use case
- workflow.py: Services that wire the store to the domain

Available use cases:
- returns: Refund computation and completion for return requests
"""
