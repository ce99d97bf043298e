"""auth/ -- Authentication and role authorization package for CredVault.

Layer rule: auth/ imports only stdlib, third-party libraries and core/.
It does NOT import from api/ or orgs/.
api/ and orgs/ import from auth/, not the other way around.
"""
