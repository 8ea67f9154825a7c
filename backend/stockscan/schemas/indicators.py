"""
CONTRACT 2: Indicator Decisions

Input: InstrumentSeries (+ FundamentalsRow for the merged variant)
Output: StockDecision / FundamentalsDecision

JSON field names are part of the dashboard contract and are kept through
aliases; Python code uses the snake_case names.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from stockscan.schemas.market import PriceRow


# =============================================================================
# ENUMS
# =============================================================================


class Decision(str, Enum):
    STRONG_BUY = "Strong Buy"
    BUY = "Buy"
    NEUTRAL = "Neutral"
    SELL = "Sell"
    STRONG_SELL = "Strong Sell"

    @property
    def score(self) -> int:
        return _DECISION_SCORES[self]


_DECISION_SCORES = {
    Decision.STRONG_BUY: 2,
    Decision.BUY: 1,
    Decision.NEUTRAL: 0,
    Decision.SELL: -1,
    Decision.STRONG_SELL: -2,
}


class IndicatorName(str, Enum):
    RSI = "RSI"
    EMA = "EMA"
    SMA = "SMA"
    MACD = "MACD"
    ADX = "ADX"
    SUPERTREND = "Supertrend"
    BOLLINGER_BANDS = "BollingerBands"
    VWAP = "VWAP"
    WILLIAMS_R = "WilliamsR"
    PSAR = "PSAR"
    ICHIMOKU = "Ichimoku"
    ATR = "ATR"


class ComputationMode(str, Enum):
    FULL = "full"
    PARTIAL = "partial"


class SkipReason(str, Enum):
    IDENTITY_MISSING = "identity_missing"
    MALFORMED_SERIES = "malformed_series"
    INSUFFICIENT_DATA = "insufficient_data"
    COMPUTATION_ERROR = "computation_error"


# =============================================================================
# OUTPUT: Latest indicator values
# =============================================================================


class LatestIndicatorValues(BaseModel):
    """Latest defined value of every indicator line, rounded to 2 decimals."""

    latest_rsi: Optional[float] = Field(default=None, alias="latestRSI")
    latest_ema9: Optional[float] = Field(default=None, alias="latestEMA9")
    latest_sma20: Optional[float] = Field(default=None, alias="latestSMA20")
    latest_macd: Optional[float] = Field(default=None, alias="latestMACD")
    latest_signal: Optional[float] = Field(default=None, alias="latestSignal")
    latest_adx: Optional[float] = Field(default=None, alias="latestADX")
    latest_plus_di: Optional[float] = Field(default=None, alias="latestPlusDI")
    latest_minus_di: Optional[float] = Field(default=None, alias="latestMinusDI")
    latest_supertrend_direction: Optional[int] = Field(
        default=None, alias="latestSupertrendDirection"
    )
    latest_supertrend: Optional[float] = Field(default=None, alias="latestSupertrend")
    latest_upper_band: Optional[float] = Field(default=None, alias="latestUpperBand")
    latest_lower_band: Optional[float] = Field(default=None, alias="latestLowerBand")
    latest_vwap: Optional[float] = Field(default=None, alias="latestVWAP")
    latest_williams_r: Optional[float] = Field(default=None, alias="latestWilliamsR")
    latest_psar: Optional[float] = Field(default=None, alias="latestPSAR")
    latest_tenkan_sen: Optional[float] = Field(default=None, alias="latestTenkanSen")
    latest_kijun_sen: Optional[float] = Field(default=None, alias="latestKijunSen")
    latest_senkou_span_a: Optional[float] = Field(default=None, alias="latestSenkouSpanA")
    latest_senkou_span_b: Optional[float] = Field(default=None, alias="latestSenkouSpanB")
    latest_chikou_span: Optional[float] = Field(default=None, alias="latestChikouSpan")
    latest_atr: Optional[float] = Field(default=None, alias="latestATR")

    class Config:
        populate_by_name = True


# =============================================================================
# OUTPUT: StockDecision (full scan)
# =============================================================================


class StockDecision(LatestIndicatorValues):
    """
    Result record for one instrument of the full scan.

    ``indicator_decisions`` holds all twelve decisions keyed by indicator
    name; ``None`` marks an indicator that could not be formed.
    """

    scripcode: int
    symbol: str
    company_name: str
    industry: Optional[str] = None
    short_name: Optional[str] = Field(default=None, alias="s_name")
    latest_price: float = Field(..., alias="latestPrice")
    latest_open: float = Field(..., alias="latestOpen")
    score: float
    decision: Decision
    indicator_decisions: dict[str, Optional[Decision]] = Field(
        default_factory=dict, alias="indicatorDecisions"
    )
    selected_indicators: list[str] = Field(default_factory=list, alias="selectedIndicators")
    unavailable_indicators: list[str] = Field(
        default_factory=list, alias="unavailableIndicators"
    )
    latest_date: Optional[datetime] = Field(default=None, alias="latestDate")
    ema9: list[Optional[float]] = Field(default_factory=list, description="Chart series")
    sma20: list[Optional[float]] = Field(default_factory=list, description="Chart series")
    dates: list[datetime] = Field(default_factory=list)
    closes: list[float] = Field(default_factory=list)

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "scripcode": 500325,
                "symbol": "RELIANCE",
                "company_name": "Reliance Industries Ltd.",
                "industry": "Refineries",
                "s_name": "Reliance",
                "latestPrice": 2950.4,
                "latestOpen": 2932.0,
                "latestRSI": 61.27,
                "score": 3.5,
                "decision": "Strong Buy",
                "indicatorDecisions": {"RSI": "Neutral", "EMA": "Buy"},
                "selectedIndicators": ["RSI", "EMA"],
                "unavailableIndicators": [],
            }
        }


# =============================================================================
# OUTPUT: FundamentalsDecision (fundamentals merge)
# =============================================================================


class FundamentalsDecision(LatestIndicatorValues):
    """
    Fundamentals row merged with the technical decisions of its instrument.

    Every fundamentals row yields one record. Technical fields stay ``None``
    and ``skip_reason`` is set when the instrument could not be analysed.
    """

    fincode: int
    scripcode: Optional[int] = None
    symbol: Optional[str] = None
    company_name: Optional[str] = None
    industry: Optional[str] = None
    short_name: Optional[str] = Field(default=None, alias="s_name")
    market_cap: Optional[float] = None
    current_price: Optional[float] = None
    high_52w: Optional[float] = None
    low_52w: Optional[float] = None
    eps: Optional[float] = None
    eps_growth: Optional[float] = None
    dividend_yield: Optional[float] = None
    pe_ratio: Optional[float] = None
    pb_ratio: Optional[float] = None
    roe: Optional[float] = None
    roce: Optional[float] = None
    debt_to_equity: Optional[float] = None
    core_ebitda: Optional[float] = None
    core_ebitda_margin: Optional[float] = None
    pat_margin: Optional[float] = None
    asset_turnover: Optional[float] = None

    rsi_decision: Optional[Decision] = Field(default=None, alias="rsiDecision")
    ema_decision: Optional[Decision] = Field(default=None, alias="emaDecision")
    sma_decision: Optional[Decision] = Field(default=None, alias="smaDecision")
    macd_decision: Optional[Decision] = Field(default=None, alias="macdDecision")
    adx_decision: Optional[Decision] = Field(default=None, alias="adxDecision")
    supertrend_decision: Optional[Decision] = Field(default=None, alias="supertrendDecision")
    bollinger_decision: Optional[Decision] = Field(default=None, alias="bollingerDecision")
    vwap_decision: Optional[Decision] = Field(default=None, alias="vwapDecision")
    williams_r_decision: Optional[Decision] = Field(default=None, alias="williamsRDecision")
    psar_decision: Optional[Decision] = Field(default=None, alias="psarDecision")
    ichimoku_decision: Optional[Decision] = Field(default=None, alias="ichimokuDecision")
    atr_decision: Optional[Decision] = Field(default=None, alias="atrDecision")

    score: Optional[float] = None
    decision: Optional[Decision] = None
    indicator_decisions: dict[str, Optional[Decision]] = Field(
        default_factory=dict, alias="indicatorDecisions"
    )
    selected_indicators: list[str] = Field(default_factory=list, alias="selectedIndicators")
    skip_reason: Optional[SkipReason] = Field(default=None, alias="skipReason")

    class Config:
        populate_by_name = True


# =============================================================================
# OUTPUT: Diagnostics
# =============================================================================


class SkippedInstrument(BaseModel):
    """An instrument the pipeline did not emit, with the reason."""

    instrument_id: int = Field(..., alias="instrumentId")
    reason: SkipReason
    detail: str = ""

    class Config:
        populate_by_name = True


class ScanReport(BaseModel):
    """Emitted records plus skip diagnostics for one batch run."""

    results: list[StockDecision] = Field(default_factory=list)
    skipped: list[SkippedInstrument] = Field(default_factory=list)


class IndicatorInfo(BaseModel):
    """Registry listing entry."""

    name: IndicatorName
    weight: float
    critical: bool
    min_length: int = Field(..., alias="minLength")

    class Config:
        populate_by_name = True


# =============================================================================
# INPUT: AnalysisRequest
# =============================================================================


class AnalysisRequest(BaseModel):
    """
    Request for an indicator scan.
    Sent by: ScreenerService
    Received by: IndicatorService
    """

    rows: list[PriceRow] = Field(default_factory=list)
    selected_indicators: Optional[list[str]] = Field(
        default=None,
        description="Indicator names to score; None selects all twelve",
    )
    mode: ComputationMode = ComputationMode.FULL
