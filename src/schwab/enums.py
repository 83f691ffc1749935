"""
Query parameter values accepted by SchwabClient methods.

Client methods accept either these members or their raw string values.
"""

from enum import Enum


class AccountField(Enum):
    """Optional account detail sections."""

    POSITIONS = "positions"


class OrderStatus(Enum):
    """Order status filter for order queries."""

    AWAITING_PARENT_ORDER = "AWAITING_PARENT_ORDER"
    AWAITING_CONDITION = "AWAITING_CONDITION"
    AWAITING_STOP_CONDITION = "AWAITING_STOP_CONDITION"
    AWAITING_MANUAL_REVIEW = "AWAITING_MANUAL_REVIEW"
    ACCEPTED = "ACCEPTED"
    AWAITING_UR_OUT = "AWAITING_UR_OUT"
    PENDING_ACTIVATION = "PENDING_ACTIVATION"
    QUEUED = "QUEUED"
    WORKING = "WORKING"
    REJECTED = "REJECTED"
    PENDING_CANCEL = "PENDING_CANCEL"
    CANCELED = "CANCELED"
    PENDING_REPLACE = "PENDING_REPLACE"
    REPLACED = "REPLACED"
    FILLED = "FILLED"
    EXPIRED = "EXPIRED"
    NEW = "NEW"
    AWAITING_RELEASE_TIME = "AWAITING_RELEASE_TIME"
    PENDING_ACKNOWLEDGEMENT = "PENDING_ACKNOWLEDGEMENT"
    PENDING_RECALL = "PENDING_RECALL"
    UNKNOWN = "UNKNOWN"


class TransactionType(Enum):
    """Transaction type filter."""

    TRADE = "TRADE"
    RECEIVE_AND_DELIVER = "RECEIVE_AND_DELIVER"
    DIVIDEND_OR_INTEREST = "DIVIDEND_OR_INTEREST"
    ACH_RECEIPT = "ACH_RECEIPT"
    ACH_DISBURSEMENT = "ACH_DISBURSEMENT"
    CASH_RECEIPT = "CASH_RECEIPT"
    CASH_DISBURSEMENT = "CASH_DISBURSEMENT"
    ELECTRONIC_FUND = "ELECTRONIC_FUND"
    WIRE_OUT = "WIRE_OUT"
    WIRE_IN = "WIRE_IN"
    JOURNAL = "JOURNAL"
    MEMORANDUM = "MEMORANDUM"
    MARGIN_CALL = "MARGIN_CALL"
    MONEY_MARKET = "MONEY_MARKET"
    SMA_ADJUSTMENT = "SMA_ADJUSTMENT"


class QuoteField(Enum):
    """Quote sections to return."""

    QUOTE = "quote"
    FUNDAMENTAL = "fundamental"
    EXTENDED = "extended"
    REFERENCE = "reference"
    REGULAR = "regular"


class OptionChainContractType(Enum):
    """Contract types to include in an option chain."""

    CALL = "CALL"
    PUT = "PUT"
    ALL = "ALL"


class OptionChainStrategy(Enum):
    """Option chain strategy. Non-SINGLE strategies return analytical chains."""

    SINGLE = "SINGLE"
    ANALYTICAL = "ANALYTICAL"
    COVERED = "COVERED"
    VERTICAL = "VERTICAL"
    CALENDAR = "CALENDAR"
    STRANGLE = "STRANGLE"
    STRADDLE = "STRADDLE"
    BUTTERFLY = "BUTTERFLY"
    CONDOR = "CONDOR"
    DIAGONAL = "DIAGONAL"
    COLLAR = "COLLAR"
    ROLL = "ROLL"


class OptionChainRange(Enum):
    """Moneyness range of an option chain."""

    IN_THE_MONEY = "ITM"
    NEAR_THE_MONEY = "NTM"
    OUT_OF_THE_MONEY = "OTM"
    STRIKES_ABOVE_MARKET = "SAK"
    STRIKES_BELOW_MARKET = "SBK"
    STRIKES_NEAR_MARKET = "SNK"
    ALL = "ALL"


class ExpirationMonth(Enum):
    """Expiration month filter for option chains."""

    JANUARY = "JAN"
    FEBRUARY = "FEB"
    MARCH = "MAR"
    APRIL = "APR"
    MAY = "MAY"
    JUNE = "JUN"
    JULY = "JUL"
    AUGUST = "AUG"
    SEPTEMBER = "SEP"
    OCTOBER = "OCT"
    NOVEMBER = "NOV"
    DECEMBER = "DEC"
    ALL = "ALL"


class Entitlement(Enum):
    """Retail token entitlement for option chains."""

    PAYING_PRO = "PP"
    NON_PRO = "NP"
    NON_PAYING_PRO = "PN"


class PeriodType(Enum):
    DAY = "day"
    MONTH = "month"
    YEAR = "year"
    YEAR_TO_DATE = "ytd"


class FrequencyType(Enum):
    MINUTE = "minute"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


class MoversIndex(Enum):
    """Index or market whose movers are returned."""

    DJI = "$DJI"
    COMPX = "$COMPX"
    SPX = "$SPX"
    NYSE = "NYSE"
    NASDAQ = "NASDAQ"
    OTCBB = "OTCBB"
    INDEX_ALL = "INDEX_ALL"
    EQUITY_ALL = "EQUITY_ALL"
    OPTION_ALL = "OPTION_ALL"
    OPTION_PUT = "OPTION_PUT"
    OPTION_CALL = "OPTION_CALL"


class MoversSort(Enum):
    VOLUME = "VOLUME"
    TRADES = "TRADES"
    PERCENT_CHANGE_UP = "PERCENT_CHANGE_UP"
    PERCENT_CHANGE_DOWN = "PERCENT_CHANGE_DOWN"


class MoversFrequency(Enum):
    """Minimum percent change for movers."""

    ZERO = 0
    ONE = 1
    FIVE = 5
    TEN = 10
    THIRTY = 30
    SIXTY = 60


class Market(Enum):
    """Markets for market hours queries."""

    EQUITY = "equity"
    OPTION = "option"
    BOND = "bond"
    FUTURE = "future"
    FOREX = "forex"


class InstrumentProjection(Enum):
    """Search mode for instrument lookups."""

    SYMBOL_SEARCH = "symbol-search"
    SYMBOL_REGEX = "symbol-regex"
    DESCRIPTION_SEARCH = "desc-search"
    DESCRIPTION_REGEX = "desc-regex"
    SEARCH = "search"
    FUNDAMENTAL = "fundamental"
