"""
Módulo de Precios - Kiosk Pricing

Punto de entrada del motor: total de carrito, cotización de producto,
validación de cupones y registro de usos al confirmar la venta.
"""
