"""Service layer — expansion, explorer reducer, layout, sessions.

Every public method of a service class returns a
:class:`~tracectl.services.result.ServiceResult`.
"""
