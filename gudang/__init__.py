"""
Gudang Lini
Warehouse storage-line cost accrual and allocation core
"""

__version__ = "1.0.0"
