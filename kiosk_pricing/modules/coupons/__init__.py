"""
Módulo de Cupones - Kiosk Pricing
"""
