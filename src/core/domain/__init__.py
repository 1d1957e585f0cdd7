"""Entidades del dominio: identidad, blogs, comentarios y reglas de permisos.

Nada aquí hace I/O. Los modelos (Pydantic v2) leen el formato del backend vía
aliases; `permissions` decide qué puede hacer cada viewer.
"""
