"""
Shopbridge

Field-mapping transformation engine and migration orchestration for moving
commerce data (products, orders) from Shopware to Shopify.

Supports:
- Declarative, ordered field mapping rules with per-field transforms
- Required-field and default-value policies
- Hand-off of each record migration to an external workflow engine
- Status callbacks and a per-record migration log
"""

__version__ = "0.1.0"
