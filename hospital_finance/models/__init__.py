# hospital_finance/models/__init__.py
from .ledger import (
    HospitalAccount, FundTransaction, IncomeCategory, ExpenseCategory, LedgerTransaction
)
from .vendor import (
    OpticsVendor, OpticsVendorTransaction, MedicineVendor, MedicineVendorTransaction, MedicineVendorPayment
)
from .fixed_asset import FixedAssetVendor, FixedAsset, FixedAssetVendorPayment
from .medicine import MedicineSale, MedicineSaleItem, MedicineSalePayment, MedicineStockPurchase
from .optics import OpticsProduct, OpticsStockMovement, OpticsSale, OpticsSalePayment
from .operation import OperationBooking
from .house_rent import AdvanceHouseRent, AdvanceHouseRentDeduction
