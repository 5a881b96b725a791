"""
SecGate - Gate decision core

Pure, synchronous building blocks: account pool resolution, mutation-role
validation, finding drop rules and gate policy evaluation.
"""
