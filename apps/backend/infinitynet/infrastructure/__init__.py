"""Capa de infraestructura: cache, pool DB y stores."""
