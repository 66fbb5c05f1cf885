"""Domain Layer: models, ports and events shared by every other layer.

Has no dependencies on infrastructure code.
"""
