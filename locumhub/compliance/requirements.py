"""Document requirement catalogue and per-role / per-entity checklists.

``validity_months`` of ``None`` means the document never expires.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from typing import Optional

from dateutil.relativedelta import relativedelta

from locumhub.common.constants import DocumentEntityType, Profession


@dataclass(frozen=True)
class Requirement:
    id: str
    label: str
    description: str
    category: str
    validity_months: Optional[int]
    mandatory: bool = True


_MANDATORY = (
    Requirement("dbs_check", "DBS Enhanced Check",
                "Enhanced DBS certificate required for all clinical roles",
                "Legal & Safety", 36),
    Requirement("right_to_work", "Right to Work",
                "Valid passport, birth certificate, or work permit",
                "Legal & Safety", None),
    Requirement("medical_indemnity", "Medical Indemnity Insurance",
                "Professional indemnity insurance cover (MDU/MPS/MDDUS)",
                "Insurance & Protection", 12),
    Requirement("basic_life_support", "Basic Life Support (BLS)",
                "Current BLS certification from approved provider",
                "Clinical Training", 12),
    Requirement("safeguarding_children", "Safeguarding Children Training",
                "Level 3 safeguarding children training certificate",
                "Safeguarding", 36),
    Requirement("safeguarding_adults", "Safeguarding Adults Training",
                "Adult safeguarding awareness certificate",
                "Safeguarding", 36),
    Requirement("infection_control", "Infection Prevention & Control",
                "IPC training for healthcare settings",
                "Clinical Training", 12),
    Requirement("medical_degree", "Medical Degree Certificate",
                "MBBS/MBChB or equivalent medical qualification",
                "Qualifications", None),
    Requirement("nursing_degree", "Nursing Degree/Diploma",
                "BSc Nursing, Diploma, or equivalent nursing qualification",
                "Qualifications", None),
    Requirement("pharmacy_degree", "Pharmacy Degree Certificate",
                "MPharm or equivalent pharmacy qualification",
                "Qualifications", None),
    Requirement("professional_qualification", "Professional Qualification",
                "Qualification recognised by the relevant regulator (e.g. HCPC)",
                "Qualifications", None),
    Requirement("clinical_reference_1", "Clinical Reference 1",
                "First clinical reference from medical supervisor or consultant",
                "References", 24),
    Requirement("clinical_reference_2", "Clinical Reference 2",
                "Second clinical reference from medical supervisor or consultant",
                "References", 24),
    Requirement("medical_cv", "Medical CV",
                "Current medical curriculum vitae with clinical experience",
                "Professional Documentation", 12),
    Requirement("occupational_health", "Occupational Health Clearance",
                "Occupational health clearance including immunization status",
                "Health & Safety", 12),
)

_SUPPLEMENTARY = (
    Requirement("advanced_life_support", "Advanced Life Support (ALS)",
                "ALS certification (recommended for GPs)",
                "Advanced Clinical Training", 36, mandatory=False),
    Requirement("prescribing_qualification", "Independent Prescribing Qualification",
                "V300 or equivalent prescribing qualification (for Nurse Practitioners)",
                "Specialist Qualifications", None, mandatory=False),
    Requirement("specialist_training", "Specialist Training Certificates",
                "Additional specialist clinical training certificates",
                "Specialist Training", 24, mandatory=False),
    Requirement("mentorship_qualification", "Clinical Mentorship Qualification",
                "Qualification to supervise junior medical staff",
                "Leadership & Teaching", 36, mandatory=False),
)

_CARE_HOME = (
    Requirement("cqc_registration", "CQC Registration",
                "Current Care Quality Commission registration certificate",
                "Regulatory Compliance", None),
    Requirement("public_liability_insurance", "Public Liability Insurance",
                "Public liability insurance certificate",
                "Insurance Documents", 12),
    Requirement("employers_liability_insurance", "Employers' Liability Insurance",
                "Employers' liability insurance certificate",
                "Insurance Documents", 12),
    Requirement("fire_risk_assessment", "Fire Risk Assessment",
                "Annual fire risk assessment for the premises",
                "Health & Safety", 12),
    Requirement("safeguarding_policy", "Safeguarding Policy",
                "Current safeguarding adults and children policy",
                "Safeguarding Policies", 12),
    Requirement("health_safety_policy", "Health & Safety Policy",
                "Organisational health and safety policy",
                "Health & Safety", 12),
)

REQUIREMENTS: dict[str, Requirement] = {
    r.id: r for r in (*_MANDATORY, *_SUPPLEMENTARY, *_CARE_HOME)
}

_CORE_STAFF = (
    "dbs_check",
    "right_to_work",
    "medical_indemnity",
    "basic_life_support",
    "safeguarding_children",
    "safeguarding_adults",
    "infection_control",
)
_REFERENCES = ("clinical_reference_1", "clinical_reference_2", "medical_cv", "occupational_health")


@dataclass(frozen=True)
class RoleChecklist:
    label: str
    mandatory: tuple[str, ...]
    recommended: tuple[str, ...]


ROLE_REQUIREMENTS: dict[Profession, RoleChecklist] = {
    Profession.gp: RoleChecklist(
        "General Practitioner",
        (*_CORE_STAFF, "medical_degree", *_REFERENCES),
        ("advanced_life_support", "specialist_training"),
    ),
    Profession.nurse_practitioner: RoleChecklist(
        "Nurse Practitioner",
        (*_CORE_STAFF, "nursing_degree", *_REFERENCES),
        ("prescribing_qualification", "advanced_life_support", "specialist_training"),
    ),
    Profession.advanced_nurse_practitioner: RoleChecklist(
        "Advanced Nurse Practitioner",
        (*_CORE_STAFF, "nursing_degree", "prescribing_qualification", *_REFERENCES),
        ("advanced_life_support", "specialist_training", "mentorship_qualification"),
    ),
    Profession.clinical_pharmacist: RoleChecklist(
        "Clinical Pharmacist",
        (*_CORE_STAFF, "pharmacy_degree", *_REFERENCES),
        ("prescribing_qualification", "specialist_training"),
    ),
    Profession.allied_healthcare: RoleChecklist(
        "Allied Healthcare Professional",
        (*_CORE_STAFF, "professional_qualification", *_REFERENCES),
        ("specialist_training",),
    ),
}

ENTITY_REQUIREMENTS: dict[DocumentEntityType, tuple[str, ...]] = {
    DocumentEntityType.care_home: tuple(r.id for r in _CARE_HOME),
}

# Free-form categories offered by the upload and edit dialogs
DOCUMENT_CATEGORIES: dict[DocumentEntityType, tuple[str, ...]] = {
    DocumentEntityType.staff: (
        "DBS Check", "RTW (Right to Work)", "Training Certificates", "Regulatory Documents",
        "Legal Documents", "Identity Documents", "CV/Resume", "Qualifications",
        "References", "Medical Clearance", "Emergency Contacts", "Occupational Health",
        "Professional Registration", "Mandatory Training", "Safeguarding Training",
        "Fire Safety Training", "First Aid Certificate", "Moving & Handling",
    ),
    DocumentEntityType.care_home: (
        "CQC Registration", "Regulatory Compliance", "Legal Documents", "Insurance Documents",
        "Safety Certificates", "Policies & Procedures", "Staff Contracts", "Compliance Reports",
        "Financial Documents", "Inspection Reports", "Training Records", "DBS Policies",
        "Safeguarding Policies", "Health & Safety", "Fire Risk Assessment", "COSHH Assessments",
        "Medication Management", "Data Protection", "Business Continuity",
    ),
    DocumentEntityType.admin: (
        "Invoices", "Reports", "Contracts", "Legal Documents", "Regulatory Documents",
        "System Documentation", "Audit Reports", "Feedback Forms", "Training Records",
        "Compliance Documentation", "Risk Assessments", "Policy Documents",
        "Business Registration", "Tax Documents", "Employment Law",
    ),
}


def role_checklist(profession: Optional[str]) -> RoleChecklist:
    """Checklist for a profession; unknown or missing professions get the GP list."""
    try:
        return ROLE_REQUIREMENTS[Profession(profession)]
    except ValueError:
        return ROLE_REQUIREMENTS[Profession.gp]


def derive_expiry(document_type: str, issued: Optional[date]) -> Optional[date]:
    """Expiry date implied by the type's validity period, if both are known."""
    requirement = REQUIREMENTS.get(document_type)
    if issued is None or requirement is None or requirement.validity_months is None:
        return None
    return issued + relativedelta(months=requirement.validity_months)
