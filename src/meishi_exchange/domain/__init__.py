"""Domain layer for Meishi Exchange.

Contains the business card and contact models. This layer has no
dependencies on storage or transport concerns.
"""
