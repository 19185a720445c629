"""
Módulo de Promociones - Kiosk Pricing

Características principales:
- Seis tipos de promoción con reglas tipadas (rules.py)
- Vigencia por fechas, horario y días de la semana en hora local
- Cupos totales y por cliente
- Selección de la mejor promoción; nunca se combinan
"""
