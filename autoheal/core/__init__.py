"""
Healing core: selector translation, capability interfaces, strategy and orchestrator
"""
