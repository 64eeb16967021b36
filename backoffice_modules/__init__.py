"""
Backoffice Modules.

Thin orchestration layers over the backoffice kernel and engines.  Each
module holds its domain models, ORM models, workflows, configuration and
a service that owns the transaction boundary.

Modules:
- Payroll: monthly generation, additions/deductions, payment, clearing
- Project: running project cost and asset rental assignments
- AR: invoice payments and credit notes
"""

from backoffice_modules import ar, payroll, project

__all__ = ["ar", "payroll", "project"]
