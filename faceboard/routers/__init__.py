"""
Faceboard - HTTP Routers

- sync: batch ImageKit sync (imagekit-sync)
- webhooks: ImageKit upload webhook (imagekit-webhook)
- health: liveness probe
"""
