"""Infrastructure Layer.

Adapters that load floor plans from external documents and hand domain
value objects to the placement engine. Domain code never imports from here.
"""
