"""
Módulo de Catálogo - Kiosk Pricing

Productos, categorías, ubicaciones y precios específicos por
ubicación / canal. El motor de precios solo lee estas tablas.
"""
