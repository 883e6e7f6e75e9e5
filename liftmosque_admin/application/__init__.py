"""Application layer: interfaces, DTOs and services.

Depends only on domain and protocol definitions. Infrastructure implements
the interfaces (Firestore store, Firebase Auth contexts).
"""
