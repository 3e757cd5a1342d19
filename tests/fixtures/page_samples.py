"""
Amostras do texto visível das páginas das casas de câmbio.
Simulam o que page.inner_text("body") devolve em cada site.
"""

KAMBISTA_BODY = """
Kambista
Tipo de cambio hoy
Compra 3.745
Venta 3.765
Cambia ahora
"""

REXTIE_BODY = """
Tipo de cambio hoy
Rextie
Compra
S/ 3.7450
Venta
S/ 3.7650
SUNAT
Compra S/ 3.7300
Venta S/ 3.7400
"""

# Sem rótulos; só valores "S/ x.xxxx" soltos
REXTIE_UNLABELED_BODY = """
Cotización del día S/ 3.3000
Mejor precio S/ 3.3500
Bancos S/ 3.9000
"""

TKAMBIO_BODY = """
Tkambio
Compra: 3.742
Venta: 3.771
"""

TKAMBIO_UNLABELED_BODY = """
Tipo de cambio
3.771
3.742
Este texto largo menciona un valor 3.999 que no debe contar para nada
"""

TUCAMBISTA_NEXT_PAYLOAD = (
    r'[[1,"{\"entity\":\"tucambista\",\"buyExchangeRate\":\"3.741\",'
    r'\"sellExchangeRate\":\"3.768\"}"]]'
)

TUCAMBISTA_BODY = """
Tucambista
Compra 3.741
Venta 3.768
"""

BLOOMBERG_BODY = """
Peruvian Sol
USD/PEN 3.7450 PEN
"""

WESTERN_UNION_BODY = """
Cambio de moneda
Compra: 3.70
Venta: 3.80
"""

# Compra e venta invertidas (outro bloco da página)
WESTERN_UNION_INVERTED_BODY = """
Compra: 3.80
Venta: 3.70
"""

SUNAT_BODY = """
Tipo de Cambio Oficial
Compra S/ 3.745
Venta S/ 3.765
"""

EMPTY_BODY = """
Estamos en mantenimiento
"""
