"""
Core services shared by the UI layer (deferred callback scheduling)
"""
