"""
Carrier integration core: registry, rate governor, request transformers,
bounded 429 retry and the gateway wiring that ties them together.
"""
