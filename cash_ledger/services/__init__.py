"""Business logic services."""

from cash_ledger.services.account_service import AccountService
from cash_ledger.services.ledger_service import LedgerService
from cash_ledger.services.bulk_writer import BulkLedgerWriter
from cash_ledger.services.denomination_service import DenominationService
from cash_ledger.services.reconciliation_service import ReconciliationService
from cash_ledger.services.report_service import ReportService
