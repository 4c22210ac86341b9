"""Pytest fixtures for testing"""

from typing import Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from credit_committee.api.main import create_app
from credit_committee.domain.catalog import get_required_documents
from credit_committee.domain.intake import ConditionSequence
from credit_committee.domain.models import Document, DocumentStatus, Dossier, Guarantee, ProjectType
from credit_committee.domain.operation import (
    BorrowerProfile,
    DocumentsSnapshot,
    GuaranteesSnapshot,
    OperationBudget,
    OperationFinancing,
    OperationKpis,
    OperationMarket,
    OperationMeta,
    OperationRevenues,
    OperationSummary,
)
from credit_committee.domain.report import (
    DvfSnapshot,
    InseeSnapshot,
    MarketInsight,
    MarketStudy,
    ReportInput,
    ReportKpis,
    ReportPillar,
    ReportSmartScore,
)
from credit_committee.infrastructure.database.models import Base
from credit_committee.infrastructure.database.session import get_db


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def sequence() -> ConditionSequence:
    """Fresh auto-condition ids per test"""
    return ConditionSequence()


def supplied_documents(project_type: ProjectType, count: int = None) -> list[Document]:
    """The first `count` catalog documents, all marked supplied"""
    catalog = get_required_documents(project_type)
    if count is not None:
        catalog = catalog[:count]
    return [Document(id=d.id, label=d.label, category=d.category, status=DocumentStatus.SUPPLIED) for d in catalog]


@pytest.fixture
def make_documents():
    """Factory for supplied catalog documents"""
    return supplied_documents


@pytest.fixture
def complete_dossier() -> Dossier:
    """Baseline dossier: every document supplied, 200k EUR mortgage against 400k EUR"""
    return Dossier(
        id="dos-complete",
        name="Résidence Les Tilleuls",
        project_type=ProjectType.BASELINE,
        requested_amount=200_000,
        project_value=300_000,
        documents=supplied_documents(ProjectType.BASELINE),
        guarantees=[Guarantee(id="g1", type="hypotheque", label="Hypothèque 1er rang", amount=400_000)],
    )


@pytest.fixture
def empty_dossier() -> Dossier:
    """Dossier just opened: nothing supplied, no guarantee"""
    return Dossier(
        id="dos-empty",
        name="Opération vide",
        project_type=ProjectType.BASELINE,
        requested_amount=500_000,
        project_value=0,
    )


@pytest.fixture
def developer_operation() -> OperationSummary:
    """Developer operation with budget, revenues, market and ratios filled in"""
    return OperationSummary(
        meta=OperationMeta(profile=BorrowerProfile.DEVELOPER),
        dossier_id="dos-promo",
        budget=OperationBudget(
            purchase_price=800_000,
            notary_fees=60_000,
            works_budget=1_200_000,
            soft_costs=150_000,
            contingency=100_000,
            total_cost=2_310_000,
        ),
        financing=OperationFinancing(loan_amount=1_600_000, equity=700_000),
        revenues=OperationRevenues(strategy="revente", exit_value=3_000_000),
        market=OperationMarket(price_per_sqm=4_200, demand_index=75, comps_count=24),
        kpis=OperationKpis(ltv=53, margin=30, ltc=69),
        documents=DocumentsSnapshot(completeness=85),
        guarantees=GuaranteesSnapshot(total_coverage=2_000_000),
    )


@pytest.fixture
def healthy_report() -> ReportInput:
    """Report input for a well-covered rental investment"""
    return ReportInput(
        programme_name="Résidence Les Tilleuls",
        address="12 rue des Lilas, Lyon",
        market_study=MarketStudy(
            commune="Lyon",
            department="69",
            dvf=DvfSnapshot(price_m2_median=4_850, transactions=120, evolution=3.2),
            insee=InseeSnapshot(population=520_000, revenue_median=26_000, unemployment_rate=8.1),
            insights=[
                MarketInsight("Prix", 4_850, "positive"),
                MarketInsight("Demande", "forte", "positive"),
                MarketInsight("Chômage", 8.1, "neutral"),
            ],
        ),
        smartscore=ReportSmartScore(
            score=78,
            verdict="favorable",
            pillars=[
                ReportPillar("garanties", "Garanties", 90),
                ReportPillar("marche", "Marché", 75),
                ReportPillar("planning", "Calendrier", 55),
            ],
        ),
        kpis=ReportKpis(ltv=45, dscr=1.6, annual_rent=48_000, total_cost=600_000, gross_margin=18),
        missing=[],
    )


@pytest.fixture
def fragile_report() -> ReportInput:
    """Report input with a coverage deficit, high leverage and data gaps"""
    return ReportInput(
        programme_name="Immeuble Gambetta",
        smartscore=ReportSmartScore(
            score=32,
            verdict="défavorable",
            pillars=[
                ReportPillar("garanties", "Garanties", 20),
                ReportPillar("revenus", "Revenus & Sortie", 35),
            ],
        ),
        kpis=ReportKpis(ltv=85, dscr=0.85, annual_rent=18_000, total_cost=600_000, gross_margin=3),
        missing=["Bail commercial", "Avis de valeur", "Bilans N-1"],
    )
