"""
Myeloma Risk Assessment Prompts

Prompt text for the main multimodal assessment and for the standalone X-ray
review. The patient narrative is rendered here from a PatientRecord; image
parts are attached by the request builder.
"""

from myeloma_guard.config import settings
from myeloma_guard.models.patient import Gender, PatientRecord, Severity

# Readable phrases for each symptom flag, in form order
SYMPTOM_PHRASES: dict[str, str] = {
    "pneumonia_like": "pneumonia-like respiratory symptoms",
    "blood_in_sputum": "blood in sputum",
    "bone_pain": "bone pain",
    "joint_swelling": "joint swelling",
    "unexplained_fractures": "unexplained fractures",
    "fatigue": "fatigue",
    "weight_loss": "weight loss",
}

LAB_PHRASES: dict[str, str] = {
    "anemia": "anemia (low blood levels)",
    "hypercalcemia": "hypercalcemia",
    "kidney_issues": "renal insufficiency / high creatinine (kidney failure)",
}


ASSESSMENT_PROMPT_TEMPLATE = """You are "{tool_name}", an expert AI oncology \
assistant at {facility_name} in Bomet County, Kenya.
Multiple Myeloma is rampant in this region (specifically Bomet East).

**Role & Capability:**
Interpret the provided scans with the rigor of radiomics-style feature extraction:
1. **Texture Analysis:** Detect heterogeneity in bone marrow.
2. **Edge Detection:** Identify "punched-out" lytic lesions with sharp borders.
3. **Density Segmentation:** Assess osteopenia (reduced bone density) in vertebrae and long bones.

**Patient Context:**
{patient_context}

**Past Medical History:**
{history}

**Reported Symptoms:**
{symptoms}

**Lab/Clinical Indicators:**
{labs}

**Bone Marrow Biopsy (BMA):**
{biopsy}

**Additional Notes:**
{notes}

**Specific Disease Markers to Watch For (CRAB & Local Indicators):**
1. Respiratory issues (Pneumonia/Blood clots/Blood stains in sputum).
2. M-protein spikes (SPEP test).
3. Bone issues: Fractures without injury, lytic lesions, osteoporosis, weak neck vertebrae.
4. Knee joint pain/swelling.
5. Anemia (Low blood levels).
6. Elevated plasma cells in bone marrow (>10% is significant).

**Treatment Contraindications & Warnings (CRITICAL):**
1. **Pregnancy:** If the patient is PREGNANT, explicitly advise the oncologist **NOT** to start standard chemotherapy.
2. **Kidney Failure:** If the patient has Renal Insufficiency / High Creatinine, explicitly advise **AGAINST** starting standard chemotherapy without first stabilizing renal function or adjusting protocols.

**Task:**
Analyze the provided information and any attached images to assess the likelihood of Multiple Myeloma.

**Imaging Interpretation Instructions:**
- **CT Scan:** Scan for lytic lesions (focal low-density areas) and cortical destruction.
- **X-Ray:** Detect lucent "punched-out" lesions, endosteal scalloping, and generalized osteopenia.
- **Ultrasound:** Analyze for soft tissue masses (plasmacytomas) or renal echogenicity changes.

Return a valid JSON object with the following structure:
{{
  "riskLevel": "Low" | "Moderate" | "High" | "Critical",
  "summary": "A concise executive summary for the oncologist (2-3 sentences).",
  "findings": ["List of key supporting clinical findings derived from symptoms, lab data, biopsy AND image interpretation."],
  "recommendations": ["List of specific next steps. INCLUDE WARNINGS ABOUT CHEMO IF PREGNANT OR KIDNEY FAILURE IS DETECTED."]
}}"""


XRAY_PROMPT = """You are an expert radiologist assistant at {facility_name}.
Analyze this X-Ray image specifically for signs of Multiple Myeloma.

**Methodology:**
1. Scan for **"Punched-out" lytic lesions** (radiolucent spots) in skull, long bones, or pelvis.
2. Evaluate **Bone Density (Osteopenia)**: Look for cortical thinning.
3. Identify **Pathological fractures**: Compression fractures in vertebrae.

Provide a concise clinical summary of findings (max 3-4 sentences).
If no obvious signs are present, state "No specific radiological evidence of myeloma lesions detected in this view."
If the image is not an X-Ray or is unreadable, please state that."""


def _bullets(lines: list[str]) -> str:
    return "\n".join(f"- {line}" for line in lines)


def format_patient_context(record: PatientRecord) -> str:
    lines = []
    if record.patient_id:
        lines.append(f"Patient ID: {record.patient_id}")
    if record.uhid:
        lines.append(f"UHID: {record.uhid}")
    lines.append(f"Age: {record.age.strip()}")
    lines.append(f"Gender: {record.gender.value if record.gender else 'Unspecified'}")
    if record.gender is Gender.FEMALE:
        status = "PREGNANT" if record.is_pregnant else "Not Pregnant"
        lines.append(f"Pregnancy Status: {status}")
    lines.append(f"Location: {record.location} (High risk zone if Bomet East)")
    return _bullets(lines)


def format_history(record: PatientRecord) -> str:
    history = record.medical_history
    lines = []
    if history.prior_bone_issues > Severity.NONE:
        lines.append(
            "Prior Bone Issues (Fractures/Osteoporosis): "
            f"{history.prior_bone_issues.value}"
        )
    if history.prior_kidney_issues > Severity.NONE:
        lines.append(
            f"History of Kidney Disease: {history.prior_kidney_issues.value}"
        )
    if history.history_of_mgus:
        lines.append("History of Monoclonal Gammopathy (MGUS)")
    if history.other.strip():
        lines.append(f"Other History: {history.other.strip()}")
    if not lines:
        lines.append("No significant history reported")
    return _bullets(lines)


def active_symptoms(record: PatientRecord) -> list[str]:
    flags = record.symptoms.model_dump()
    return [phrase for key, phrase in SYMPTOM_PHRASES.items() if flags[key]]


def active_labs(record: PatientRecord) -> list[str]:
    """Readable lab flags; the M-protein level only when M-protein is present."""
    labs = record.lab_results
    lines = []
    if labs.m_protein_present:
        line = "M-Protein Present (SPEP)"
        if labs.m_protein_value > 0:
            line += f": Level {labs.m_protein_value:g} g/dL"
        lines.append(line)
    flags = labs.model_dump()
    lines.extend(phrase for key, phrase in LAB_PHRASES.items() if flags[key])
    return lines


def format_biopsy(record: PatientRecord) -> str:
    biopsy = record.bone_marrow_biopsy
    detected = "YES" if biopsy.abnormal_plasma_cells else "No"
    return _bullets([
        f"Plasma Cell Percentage: {biopsy.plasma_cell_percentage}%",
        f"Abnormal/Clonal Plasma Cells Detected: {detected}",
    ])


def format_assessment_prompt(record: PatientRecord, notes: str) -> str:
    """Assemble the complete assessment prompt.

    Args:
        record: The patient record being assessed.
        notes: Combined free-text notes (general plus per-modality).

    Returns:
        Fully interpolated prompt string.
    """
    symptoms = active_symptoms(record)
    labs = active_labs(record)
    return ASSESSMENT_PROMPT_TEMPLATE.format(
        tool_name=settings.TOOL_NAME,
        facility_name=settings.FACILITY_NAME,
        patient_context=format_patient_context(record),
        history=format_history(record),
        symptoms=_bullets(symptoms) if symptoms else "- None reported",
        labs=_bullets(labs) if labs else "- None flagged",
        biopsy=format_biopsy(record),
        notes=notes.strip() or "None",
    )


def format_xray_prompt() -> str:
    return XRAY_PROMPT.format(facility_name=settings.FACILITY_NAME)
