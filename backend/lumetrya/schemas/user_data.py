from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator
from lumetrya.schemas.metrics import Report

# ===== Company profile =====
class CompanyDetails(BaseModel):
    legalName: str = ""
    tin: str = ""
    kpp: str = ""
    ogrn: str = ""
    legalAddress: str = ""
    bankName: str = ""
    bic: str = ""
    correspondentAccount: str = ""
    checkingAccount: str = ""

class CompanyContacts(BaseModel):
    phones: List[str] = Field(default_factory=list)
    email: str = ""
    address: str = ""

class Employee(BaseModel):
    id: str
    name: str = ""
    position: str = ""

class CompanyProfile(BaseModel):
    companyName: str = "—"
    details: CompanyDetails = Field(default_factory=CompanyDetails)
    contacts: CompanyContacts = Field(default_factory=CompanyContacts)
    employees: List[Employee] = Field(default_factory=list)
    socialMedia: List[str] = Field(default_factory=list)
    websites: List[str] = Field(default_factory=list)
    about: str = ""
    aiSystemInstruction: str = ""
    language: str = "ru"  # "ru" | "en" | "kz"
    darkModeEnabled: bool = False

# ===== Collections =====
class CommercialProposal(BaseModel):
    id: str
    date: Optional[str] = None
    direction: str = ""
    proposalNumber: str = ""
    invoiceNumber: Optional[str] = None
    company: Optional[str] = None
    item: str = ""
    amount: float = 0
    invoiceDate: Optional[str] = None
    paymentDate: Optional[str] = None
    paymentType: Optional[str] = None
    status: str = ""

class AdCampaign(BaseModel):
    id: str
    name: str = ""
    status: str = ""
    type: str = ""
    budgetType: str = ""
    budget: float = 0
    impressions: float = 0
    clicks: float = 0
    ctr: float = 0
    spend: float = 0
    conversions: float = 0
    cpc: float = 0
    conversionRate: float = 0
    cpa: float = 0
    strategy: str = ""
    period: str = ""
    currencyCode: Optional[str] = None
    interactions: Optional[float] = None
    interactionRate: Optional[float] = None
    avgPrice: Optional[float] = None

class Link(BaseModel):
    id: str
    url: str = ""
    comment: str = ""
    date: Optional[str] = None

class StoredFile(BaseModel):
    id: str
    name: str = ""
    type: str = ""
    size: int = 0
    content: str = ""  # base64 payload
    date: Optional[str] = None

class Payment(BaseModel):
    id: str
    serviceName: str = ""
    lastPaymentDate: Optional[str] = None
    nextPaymentDate: Optional[str] = None
    paymentPeriod: str = "monthly"  # "monthly" | "yearly" | "onetime"
    amount: float = 0
    currency: str = "KZT"
    comment: str = ""
    paymentMethod: str = ""
    paymentDetails: str = ""
    invoiceId: Optional[str] = None
    recipientName: Optional[str] = None
    recipientBin: Optional[str] = None
    recipientBank: Optional[str] = None
    recipientIic: Optional[str] = None

class OtherReportKpi(BaseModel):
    id: str
    name: str = ""
    value: str = ""

class OtherReport(BaseModel):
    id: str
    name: str = ""
    date: Optional[str] = None
    category: str = ""
    description: str = ""
    kpis: List[OtherReportKpi] = Field(default_factory=list)

class KnowledgeItem(BaseModel):
    id: str
    title: str = ""
    content: str = ""
    links: List[str] = Field(default_factory=list)
    date: Optional[str] = None

# ===== Snapshot =====
class UserData(BaseModel):
    companyProfile: CompanyProfile = Field(default_factory=CompanyProfile)
    reports: List[Report] = Field(default_factory=list)
    proposals: List[CommercialProposal] = Field(default_factory=list)
    campaigns: List[AdCampaign] = Field(default_factory=list)
    links: List[Link] = Field(default_factory=list)
    files: List[StoredFile] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    otherReports: List[OtherReport] = Field(default_factory=list)
    knowledgeBase: List[KnowledgeItem] = Field(default_factory=list)
    companyStrategy: str = ""

    @field_validator(
        "reports", "proposals", "campaigns", "links", "files",
        "payments", "otherReports", "knowledgeBase", mode="before",
    )
    @classmethod
    def _none_is_empty(cls, v: Any):
        return [] if v is None else v

# Collection name -> item model; the closed set the store and repository work on
COLLECTION_MODELS = {
    "reports": Report,
    "proposals": CommercialProposal,
    "campaigns": AdCampaign,
    "links": Link,
    "files": StoredFile,
    "payments": Payment,
    "otherReports": OtherReport,
    "knowledgeBase": KnowledgeItem,
}
