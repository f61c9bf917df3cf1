"""
============================================================
TARJETA CRC — infrastructure/__init__.py
============================================================
Module: infrastructure (adapters concretos)

Subpaquetes:
  - db: pool async de PostgreSQL
  - repositories: stores relacional, documental y de códigos
  - services: identidad (Firebase), email (SMTP), pagos (Stripe), fakes

Policy:
  - Sin side effects al importar; el wiring vive en container.py.
============================================================
"""
