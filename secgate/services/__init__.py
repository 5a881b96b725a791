"""
SecGate - Services

Async orchestration and persistence on top of the pure gate core.
"""
