"""
Kiosk Pricing - motor de precios y promociones para caja y kiosco
"""
