"""Required-document catalog, keyed by project type (read-only reference data)"""

from typing import Dict, List, Union

from credit_committee.domain.models import ProjectType, RequiredDocument

# Document ids checked by project-type-specific condition rules
PRE_COMMERCIALISATION_DOC_ID = "promo-13"
PLANNING_DOC_ID = "march-15"


def _docs(*rows: tuple) -> List[RequiredDocument]:
    return [RequiredDocument(id=doc_id, label=label, category=category) for doc_id, label, category in rows]


DEVELOPER_DOCUMENTS = _docs(
    # Identite & juridique
    ("promo-01", "Statuts de la société (SCI/SCCV)", "Juridique"),
    ("promo-02", "Extrait Kbis de moins de 3 mois", "Juridique"),
    ("promo-03", "Pièce d'identité du gérant / dirigeant", "Juridique"),
    ("promo-04", "Pouvoirs de signature", "Juridique"),
    # Foncier & urbanisme
    ("promo-05", "Promesse de vente ou compromis signé", "Foncier"),
    ("promo-06", "Titre de propriété ou attestation notariée", "Foncier"),
    ("promo-07", "Permis de construire purgé de tout recours", "Urbanisme"),
    ("promo-08", "Plans architecturaux (masse, niveaux, coupes)", "Urbanisme"),
    # Financier
    ("promo-09", "Bilan prévisionnel de l'opération (TTC/HT)", "Financier"),
    ("promo-10", "Plan de trésorerie mensuel", "Financier"),
    ("promo-11", "Grille de prix de vente par lot", "Financier"),
    ("promo-12", "Bilans et liasses fiscales N-1, N-2 du promoteur", "Financier"),
    ("promo-13", "Tableau de pré-commercialisation (réservations)", "Commercial"),
    ("promo-14", "Étude de marché ou avis de valeur", "Commercial"),
    # Technique
    ("promo-15", "Étude géotechnique (G2 AVP minimum)", "Technique"),
    ("promo-16", "Attestation d'assurance Dommages-Ouvrage", "Assurance"),
    ("promo-17", "Contrat de maîtrise d'œuvre ou entreprise générale", "Technique"),
    ("promo-18", "Garantie Financière d'Achèvement (GFA) - projet ou engagement", "Assurance"),
)

TRADER_DOCUMENTS = _docs(
    ("march-01", "Statuts de la société", "Juridique"),
    ("march-02", "Extrait Kbis de moins de 3 mois", "Juridique"),
    ("march-03", "Pièce d'identité du gérant / dirigeant", "Juridique"),
    ("march-04", "Promesse ou compromis de vente", "Acquisition"),
    ("march-05", "Titre de propriété ou acte notarié", "Acquisition"),
    ("march-06", "Diagnostics immobiliers obligatoires (DPE, amiante, plomb…)", "Technique"),
    ("march-07", "Plan de financement de l'opération", "Financier"),
    ("march-08", "Budget travaux détaillé (devis signés)", "Financier"),
    ("march-09", "Estimation de la valeur de revente (avis de valeur)", "Financier"),
    ("march-10", "Bilans et liasses fiscales N-1, N-2", "Financier"),
    ("march-11", "Tableau récapitulatif des opérations passées", "Financier"),
    ("march-12", "Descriptif des travaux envisagés", "Technique"),
    ("march-13", "Permis de construire ou déclaration préalable (si travaux)", "Urbanisme"),
    ("march-14", "Attestation d'assurance RC Pro", "Assurance"),
    ("march-15", "Planning prévisionnel (acquisition → revente)", "Commercial"),
)

BASELINE_DOCUMENTS = _docs(
    ("base-01", "Pièce d'identité de l'emprunteur", "Juridique"),
    ("base-02", "Justificatif de domicile de moins de 3 mois", "Juridique"),
    ("base-03", "Avis d'imposition N-1 et N-2", "Financier"),
    ("base-04", "Trois derniers bulletins de salaire ou bilan comptable", "Financier"),
    ("base-05", "Relevés de comptes bancaires (3 derniers mois)", "Financier"),
    ("base-06", "Tableau d'endettement (crédits en cours)", "Financier"),
    ("base-07", "Compromis de vente ou promesse signée", "Acquisition"),
    ("base-08", "Estimation ou avis de valeur du bien", "Acquisition"),
    ("base-09", "Diagnostics immobiliers obligatoires", "Technique"),
    ("base-10", "Questionnaire de santé (assurance emprunteur)", "Assurance"),
    ("base-11", "Attestation d'assurance habitation (ou projet)", "Assurance"),
)

_DOCUMENTS_BY_TYPE: Dict[ProjectType, List[RequiredDocument]] = {
    ProjectType.DEVELOPER: DEVELOPER_DOCUMENTS,
    ProjectType.TRADER: TRADER_DOCUMENTS,
    ProjectType.BASELINE: BASELINE_DOCUMENTS,
}


def get_required_documents(project_type: Union[ProjectType, str]) -> List[RequiredDocument]:
    """Return the catalog for a project type, falling back to baseline for unknown types."""
    try:
        key = ProjectType(project_type)
    except ValueError:
        return list(BASELINE_DOCUMENTS)
    return list(_DOCUMENTS_BY_TYPE[key])


def get_document_categories(project_type: Union[ProjectType, str]) -> List[str]:
    """Distinct categories of a catalog, in catalog order."""
    categories: List[str] = []
    for doc in get_required_documents(project_type):
        if doc.category not in categories:
            categories.append(doc.category)
    return categories
