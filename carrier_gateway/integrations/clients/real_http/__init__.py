"""
Real HTTP integration clients.

These clients communicate with the carriers' quote and policy APIs over
HTTPS. They return raw ``(status_code, body)`` pairs; response bodies are
normalised into the contracts in ``integrations/contracts`` by
``integrations/policy/response_wrappers.py``.

Switching:
Mock vs real carrier transport is selected once, in
``integrations/carriers/gateway.py`` (``INTEGRATIONS_MODE``).
"""
