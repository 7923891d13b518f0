"""tasks/ -- Task records and the ownership-scoped service around them.

Layer rule: tasks/ may import from core/ and auth/ (for the account store);
it does NOT import from api/. api/ imports from tasks/, not the other way around.
"""
