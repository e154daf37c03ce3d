"""
Curated drug catalog and drug-drug interaction knowledge base.

The catalog maps RXCUI identifiers to generic names, brand names and a
therapeutic class code. The interaction rows are the authoritative local
source: hand-reviewed against FDA labelling and the interaction literature,
referenced here by generic name and keyed by canonical RXCUI pair once loaded
into a LocalCuratedStore.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

from .combinations import canonical_key
from .models import DrugRef, EvidenceLevel, InteractionRecord, LOCAL_SOURCE, Severity

logger = logging.getLogger(__name__)


# ============================================================================
# Drug catalog
# ============================================================================

@dataclass(frozen=True)
class CatalogDrug:
    """One drug concept known to the engine."""
    rxcui: str
    name: str
    drug_class: Optional[str] = None
    brands: Tuple[str, ...] = ()

    def to_ref(self) -> DrugRef:
        return DrugRef(
            id=self.rxcui,
            display_name=self.name.capitalize(),
            generic_name=self.name,
            drug_class=self.drug_class,
        )


DRUG_CATALOG: List[CatalogDrug] = [
    # Anticoagulants
    CatalogDrug("11289", "warfarin", "ORAL_ANTICOAGULANTS", ("Coumadin", "Jantoven")),
    CatalogDrug("1364430", "apixaban", "ORAL_ANTICOAGULANTS", ("Eliquis",)),
    CatalogDrug("1114195", "rivaroxaban", "ORAL_ANTICOAGULANTS", ("Xarelto",)),
    CatalogDrug("1037042", "dabigatran", "ORAL_ANTICOAGULANTS", ("Pradaxa",)),
    CatalogDrug("1599538", "edoxaban", "ORAL_ANTICOAGULANTS", ("Savaysa",)),

    # Antiplatelets
    CatalogDrug("1191", "aspirin", "SALICYLATES", ("Bayer", "Ecotrin")),
    CatalogDrug("32968", "clopidogrel", "P2Y12_INHIBITORS", ("Plavix",)),
    CatalogDrug("613391", "prasugrel", "P2Y12_INHIBITORS", ("Effient",)),
    CatalogDrug("1116632", "ticagrelor", "P2Y12_INHIBITORS", ("Brilinta",)),

    # Analgesics
    CatalogDrug("5640", "ibuprofen", "NSAIDS", ("Advil", "Motrin")),
    CatalogDrug("7258", "naproxen", "NSAIDS", ("Aleve", "Naprosyn")),
    CatalogDrug("3355", "diclofenac", "NSAIDS", ("Voltaren",)),
    CatalogDrug("140587", "celecoxib", "NSAIDS", ("Celebrex",)),
    CatalogDrug("161", "acetaminophen", "NON_OPIOID_ANALGESICS", ("Tylenol", "Paracetamol")),
    CatalogDrug("2670", "codeine", "OPIOID_ANALGESICS"),
    CatalogDrug("10689", "tramadol", "OPIOID_ANALGESICS", ("Ultram",)),
    CatalogDrug("7052", "morphine", "OPIOID_ANALGESICS", ("MS Contin",)),
    CatalogDrug("7804", "oxycodone", "OPIOID_ANALGESICS", ("OxyContin",)),
    CatalogDrug("3423", "hydromorphone", "OPIOID_ANALGESICS", ("Dilaudid",)),

    # Acid suppression
    CatalogDrug("7646", "omeprazole", "PROTON_PUMP_INHIBITORS", ("Prilosec",)),
    CatalogDrug("283742", "esomeprazole", "PROTON_PUMP_INHIBITORS", ("Nexium",)),
    CatalogDrug("40790", "pantoprazole", "PROTON_PUMP_INHIBITORS", ("Protonix",)),
    CatalogDrug("17128", "lansoprazole", "PROTON_PUMP_INHIBITORS", ("Prevacid",)),
    CatalogDrug("114979", "rabeprazole", "PROTON_PUMP_INHIBITORS", ("Aciphex",)),

    # Lipid lowering
    CatalogDrug("36567", "simvastatin", "STATINS", ("Zocor",)),
    CatalogDrug("83367", "atorvastatin", "STATINS", ("Lipitor",)),
    CatalogDrug("301542", "rosuvastatin", "STATINS", ("Crestor",)),
    CatalogDrug("42463", "pravastatin", "STATINS", ("Pravachol",)),
    CatalogDrug("4719", "gemfibrozil", "FIBRATES", ("Lopid",)),

    # Anti-infectives
    CatalogDrug("21212", "clarithromycin", "MACROLIDES", ("Biaxin",)),
    CatalogDrug("18631", "azithromycin", "MACROLIDES", ("Zithromax",)),
    CatalogDrug("4053", "erythromycin", "MACROLIDES"),
    CatalogDrug("723", "amoxicillin", "PENICILLINS", ("Amoxil",)),
    CatalogDrug("4450", "fluconazole", "AZOLE_ANTIFUNGALS", ("Diflucan",)),
    CatalogDrug("6135", "ketoconazole", "AZOLE_ANTIFUNGALS"),
    CatalogDrug("9384", "rifampin", "RIFAMYCINS", ("Rifadin",)),

    # Cardiovascular
    CatalogDrug("703", "amiodarone", "ANTIARRHYTHMICS", ("Pacerone",)),
    CatalogDrug("29046", "lisinopril", "ACE_INHIBITORS", ("Zestril", "Prinivil")),
    CatalogDrug("3827", "enalapril", "ACE_INHIBITORS", ("Vasotec",)),
    CatalogDrug("35296", "ramipril", "ACE_INHIBITORS", ("Altace",)),
    CatalogDrug("6918", "metoprolol", "BETA_BLOCKERS", ("Lopressor", "Toprol XL")),
    CatalogDrug("1202", "atenolol", "BETA_BLOCKERS", ("Tenormin",)),
    CatalogDrug("8787", "propranolol", "BETA_BLOCKERS", ("Inderal",)),
    CatalogDrug("20352", "carvedilol", "BETA_BLOCKERS", ("Coreg",)),

    # Psychiatry
    CatalogDrug("4493", "fluoxetine", "SSRIS", ("Prozac",)),
    CatalogDrug("32937", "paroxetine", "SSRIS", ("Paxil",)),
    CatalogDrug("36437", "sertraline", "SSRIS", ("Zoloft",)),
    CatalogDrug("2556", "citalopram", "SSRIS", ("Celexa",)),
    CatalogDrug("321988", "escitalopram", "SSRIS", ("Lexapro",)),
    CatalogDrug("39786", "venlafaxine", "SNRIS", ("Effexor",)),
    CatalogDrug("704", "amitriptyline", "TRICYCLIC_ANTIDEPRESSANTS"),
    CatalogDrug("42347", "bupropion", "AMINOKETONE_ANTIDEPRESSANTS", ("Wellbutrin",)),

    # Metabolic / gout
    CatalogDrug("6809", "metformin", "BIGUANIDES", ("Glucophage",)),
    CatalogDrug("519", "allopurinol", "XANTHINE_OXIDASE_INHIBITORS", ("Zyloprim",)),

    # Oncology / immunosuppression
    CatalogDrug("10324", "tamoxifen", "SERMS", ("Soltamox",)),
    CatalogDrug("1256", "azathioprine", "THIOPURINES", ("Imuran",)),
    CatalogDrug("103", "mercaptopurine", "THIOPURINES", ("Purixan",)),
    CatalogDrug("4492", "fluorouracil", "FLUOROPYRIMIDINES", ("5-FU",)),
    CatalogDrug("194000", "capecitabine", "FLUOROPYRIMIDINES", ("Xeloda",)),
    CatalogDrug("6851", "methotrexate", "ANTIMETABOLITES", ("Trexall",)),
    CatalogDrug("3002", "cyclophosphamide", "ALKYLATING_AGENTS"),
    CatalogDrug("3639", "doxorubicin", "ANTHRACYCLINES", ("Adriamycin",)),
    CatalogDrug("40048", "carboplatin", "PLATINUM_AGENTS"),
    CatalogDrug("2555", "cisplatin", "PLATINUM_AGENTS"),
]


class DrugCatalog:
    """Case-insensitive lookup over the drug catalog by RXCUI, generic or brand name."""

    def __init__(self, entries: Optional[Iterable[CatalogDrug]] = None):
        self._by_id: Dict[str, CatalogDrug] = {}
        self._by_name: Dict[str, CatalogDrug] = {}
        for entry in entries if entries is not None else DRUG_CATALOG:
            self._by_id[entry.rxcui] = entry
            self._by_name[entry.name.lower()] = entry
            for brand in entry.brands:
                self._by_name.setdefault(brand.lower(), entry)

    def lookup(self, query: str) -> Optional[CatalogDrug]:
        """Find a drug by identifier or name; None when unknown."""
        key = (query or "").strip()
        if not key:
            return None
        return self._by_id.get(key) or self._by_name.get(key.lower())

    def by_id(self, rxcui: str) -> Optional[CatalogDrug]:
        return self._by_id.get(rxcui)

    def entries(self) -> List[CatalogDrug]:
        return list(self._by_id.values())


# ============================================================================
# Curated interactions
# ============================================================================

@dataclass(frozen=True)
class CuratedInteraction:
    """Hand-curated drug-drug interaction, referenced by generic name."""
    drug_a: str
    drug_b: str
    severity: Severity
    evidence_level: EvidenceLevel
    mechanism: str
    effect: str
    management: str
    frequency: Optional[str] = None
    onset: Optional[str] = None
    documentation: Optional[str] = None
    references: Tuple[str, ...] = ()


CURATED_INTERACTIONS: List[CuratedInteraction] = [

    # Bleeding risk with oral anticoagulants
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="aspirin",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="Additive anticoagulant and antiplatelet effects",
        effect="Increased bleeding risk",
        management="Avoid unless specifically indicated; monitor INR and watch for signs of bleeding",
        frequency="common",
        onset="rapid",
        documentation="established",
        references=("FDA label: Coumadin (warfarin sodium)",),
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="ibuprofen",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="NSAID platelet inhibition and gastric mucosal injury on top of anticoagulation",
        effect="Increased risk of gastrointestinal bleeding",
        management="Prefer acetaminophen for analgesia; if unavoidable use lowest dose with gastroprotection",
        frequency="common",
        onset="delayed",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="naproxen",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="NSAID platelet inhibition and gastric mucosal injury on top of anticoagulation",
        effect="Increased risk of gastrointestinal bleeding",
        management="Avoid combination; monitor INR and hemoglobin if co-prescribed",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="diclofenac",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="NSAID platelet inhibition on top of anticoagulation",
        effect="Increased bleeding risk",
        management="Avoid combination; consider topical or non-NSAID analgesia",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="celecoxib",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="CYP2C9 competition raises warfarin exposure; additive bleeding risk",
        effect="Elevated INR and bleeding",
        management="Monitor INR closely when starting or stopping celecoxib",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="amiodarone",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="Amiodarone inhibits CYP2C9 and CYP3A4, reducing warfarin clearance",
        effect="Marked INR elevation and bleeding",
        management="Reduce warfarin dose by 30-50% and monitor INR weekly for at least 6 weeks",
        frequency="common",
        onset="delayed",
        documentation="established",
        references=("FDA label: Cordarone (amiodarone HCl)",),
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="fluconazole",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="Fluconazole inhibits CYP2C9, the main clearance pathway of S-warfarin",
        effect="Marked INR elevation and bleeding",
        management="Reduce warfarin dose and monitor INR within 3-5 days",
        onset="delayed",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="capecitabine",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="Capecitabine down-regulates CYP2C9",
        effect="Altered coagulation parameters and bleeding, including death",
        management="Monitor INR frequently and adjust warfarin dose",
        documentation="established",
        references=("FDA label: Xeloda (capecitabine), boxed warning",),
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="acetaminophen",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.B,
        mechanism="Regular acetaminophen use above 2 g/day potentiates warfarin",
        effect="Increased INR",
        management="Occasional use is acceptable; monitor INR with sustained use",
        frequency="uncommon",
        onset="delayed",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="warfarin",
        drug_b="amoxicillin",
        severity=Severity.MINOR,
        evidence_level=EvidenceLevel.C,
        mechanism="Altered gut flora may reduce vitamin K production",
        effect="Possible INR increase",
        management="Consider an INR check during the antibiotic course",
        frequency="rare",
        documentation="suspected",
    ),
    CuratedInteraction(
        drug_a="apixaban",
        drug_b="aspirin",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Additive anticoagulant and antiplatelet effects",
        effect="Increased bleeding risk",
        management="Combine only with a clear indication; reassess need for aspirin",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="rivaroxaban",
        drug_b="aspirin",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Additive anticoagulant and antiplatelet effects",
        effect="Increased bleeding risk",
        management="Combine only with a clear indication; reassess need for aspirin",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="rivaroxaban",
        drug_b="ketoconazole",
        severity=Severity.CONTRAINDICATED,
        evidence_level=EvidenceLevel.B,
        mechanism="Combined P-gp and strong CYP3A4 inhibition raises rivaroxaban exposure",
        effect="Increased bleeding risk",
        management="Avoid concomitant use",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="dabigatran",
        drug_b="rifampin",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Rifampin induces P-gp, lowering dabigatran exposure",
        effect="Reduced anticoagulant effect and thrombotic risk",
        management="Avoid combination",
        documentation="established",
    ),

    # Antiplatelet / analgesic combinations
    CuratedInteraction(
        drug_a="aspirin",
        drug_b="ibuprofen",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.B,
        mechanism="Competitive inhibition at COX reduces aspirin antiplatelet effect",
        effect="Reduced cardioprotective antiplatelet effect of aspirin",
        management="Give immediate-release aspirin at least 30 minutes before, or 8 hours after, ibuprofen",
        frequency="common",
        onset="rapid",
        documentation="established",
        references=("FDA Science Paper: Concomitant Use of Ibuprofen and Aspirin (2006)",),
    ),
    CuratedInteraction(
        drug_a="aspirin",
        drug_b="naproxen",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.C,
        mechanism="Competitive inhibition at COX reduces aspirin antiplatelet effect",
        effect="Reduced antiplatelet effect and additive GI toxicity",
        management="Separate administration; consider gastroprotection",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="clopidogrel",
        drug_b="aspirin",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.A,
        mechanism="Additive antiplatelet effects",
        effect="Increased bleeding risk (expected with dual antiplatelet therapy)",
        management="Use when dual antiplatelet therapy is intended; limit duration per indication",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="clopidogrel",
        drug_b="omeprazole",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Omeprazole inhibits CYP2C19, reducing clopidogrel activation",
        effect="Reduced antiplatelet efficacy and increased cardiovascular risk",
        management="Use pantoprazole or an H2 blocker instead",
        documentation="established",
        references=("FDA Drug Safety Communication (2010): clopidogrel and omeprazole",),
    ),
    CuratedInteraction(
        drug_a="clopidogrel",
        drug_b="esomeprazole",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Esomeprazole inhibits CYP2C19, reducing clopidogrel activation",
        effect="Reduced antiplatelet efficacy",
        management="Use pantoprazole or an H2 blocker instead",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="ibuprofen",
        drug_b="lisinopril",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.B,
        mechanism="NSAIDs blunt prostaglandin-mediated renal perfusion",
        effect="Reduced antihypertensive effect and risk of acute kidney injury",
        management="Monitor blood pressure and renal function",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="methotrexate",
        drug_b="ibuprofen",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.B,
        mechanism="NSAIDs reduce renal clearance of methotrexate",
        effect="Methotrexate toxicity",
        management="Avoid with high-dose methotrexate; monitor blood counts with low dose",
        documentation="established",
    ),

    # Statins (CYP3A4 / OATP)
    CuratedInteraction(
        drug_a="simvastatin",
        drug_b="clarithromycin",
        severity=Severity.CONTRAINDICATED,
        evidence_level=EvidenceLevel.A,
        mechanism="Strong CYP3A4 inhibition raises simvastatin exposure many-fold",
        effect="Myopathy and rhabdomyolysis",
        management="Contraindicated; suspend simvastatin during the antibiotic course",
        documentation="established",
        references=("FDA label: Zocor (simvastatin)",),
    ),
    CuratedInteraction(
        drug_a="simvastatin",
        drug_b="gemfibrozil",
        severity=Severity.CONTRAINDICATED,
        evidence_level=EvidenceLevel.A,
        mechanism="Gemfibrozil inhibits statin glucuronidation and OATP1B1 uptake",
        effect="Myopathy and rhabdomyolysis",
        management="Contraindicated; use fenofibrate if a fibrate is required",
        documentation="established",
    ),
    CuratedInteraction(
        drug_a="atorvastatin",
        drug_b="clarithromycin",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="CYP3A4 inhibition raises atorvastatin exposure",
        effect="Increased risk of myopathy",
        management="Limit atorvastatin to 20 mg/day or use azithromycin",
        documentation="established",
    ),

    # CYP2D6 inhibition
    CuratedInteraction(
        drug_a="codeine",
        drug_b="fluoxetine",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Fluoxetine inhibits CYP2D6, reducing codeine conversion to morphine",
        effect="Reduced analgesic efficacy",
        management="Monitor pain control; may need alternative analgesic",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="tramadol",
        drug_b="paroxetine",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Paroxetine inhibits CYP2D6 and adds serotonergic activity",
        effect="Reduced analgesia and risk of serotonin syndrome",
        management="Consider alternative pain management",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="tramadol",
        drug_b="fluoxetine",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="CYP2D6 inhibition and additive serotonergic activity",
        effect="Risk of serotonin syndrome and seizures",
        management="Avoid combination or monitor closely for serotonergic toxicity",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="tramadol",
        drug_b="sertraline",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.C,
        mechanism="Additive serotonergic activity",
        effect="Risk of serotonin syndrome",
        management="Monitor for agitation, hyperthermia and clonus",
        documentation="suspected",
    ),
    CuratedInteraction(
        drug_a="tamoxifen",
        drug_b="paroxetine",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Paroxetine inhibits CYP2D6, reducing formation of endoxifen",
        effect="Reduced tamoxifen efficacy",
        management="Use an antidepressant with minimal CYP2D6 inhibition (e.g. venlafaxine)",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="tamoxifen",
        drug_b="fluoxetine",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.B,
        mechanism="Fluoxetine inhibits CYP2D6, reducing formation of endoxifen",
        effect="Reduced tamoxifen efficacy",
        management="Use an antidepressant with minimal CYP2D6 inhibition (e.g. venlafaxine)",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="amitriptyline",
        drug_b="bupropion",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.C,
        mechanism="Bupropion inhibits CYP2D6, increasing amitriptyline levels",
        effect="Increased risk of tricyclic toxicity",
        management="Monitor for anticholinergic effects, consider dose reduction",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="metoprolol",
        drug_b="paroxetine",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.B,
        mechanism="Paroxetine inhibits CYP2D6, raising metoprolol exposure",
        effect="Bradycardia and hypotension",
        management="Monitor heart rate; consider atenolol or bisoprolol",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="metoprolol",
        drug_b="fluoxetine",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.C,
        mechanism="Fluoxetine inhibits CYP2D6, raising metoprolol exposure",
        effect="Bradycardia",
        management="Monitor heart rate",
        documentation="suspected",
    ),

    # CYP2C19 inhibition
    CuratedInteraction(
        drug_a="citalopram",
        drug_b="omeprazole",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.C,
        mechanism="Omeprazole inhibits CYP2C19, raising citalopram exposure",
        effect="QT prolongation risk",
        management="Limit citalopram to 20 mg/day",
        documentation="probable",
    ),
    CuratedInteraction(
        drug_a="escitalopram",
        drug_b="omeprazole",
        severity=Severity.MODERATE,
        evidence_level=EvidenceLevel.C,
        mechanism="Omeprazole inhibits CYP2C19, raising escitalopram exposure",
        effect="QT prolongation risk",
        management="Monitor for adverse effects; consider dose reduction",
        documentation="suspected",
    ),

    # Thiopurines
    CuratedInteraction(
        drug_a="azathioprine",
        drug_b="allopurinol",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="Allopurinol inhibits xanthine oxidase, blocking thiopurine inactivation",
        effect="Severe myelosuppression",
        management="Reduce azathioprine dose to one quarter and monitor blood counts",
        documentation="established",
        references=("FDA label: Imuran (azathioprine)",),
    ),
    CuratedInteraction(
        drug_a="mercaptopurine",
        drug_b="allopurinol",
        severity=Severity.MAJOR,
        evidence_level=EvidenceLevel.A,
        mechanism="Allopurinol inhibits xanthine oxidase, blocking thiopurine inactivation",
        effect="Severe myelosuppression",
        management="Reduce mercaptopurine dose to one third or one quarter",
        documentation="established",
    ),
]


# ============================================================================
# Local curated store
# ============================================================================

class LocalCuratedStore:
    """
    In-memory store of curated interactions keyed by canonical RXCUI pair.

    Built once from seed rows; every lookup is a dict access. Rows naming a
    drug missing from the catalog are skipped with a warning.
    """

    def __init__(
        self,
        interactions: Optional[Iterable[CuratedInteraction]] = None,
        catalog: Optional[DrugCatalog] = None,
    ):
        self.catalog = catalog or DrugCatalog()
        self._records: Dict[Tuple[str, str], InteractionRecord] = {}

        rows = interactions if interactions is not None else CURATED_INTERACTIONS
        for row in rows:
            record = self._build_record(row)
            if record is not None:
                self._records[record.pair_key] = record

        logger.debug(f"Loaded {len(self._records)} curated interactions")

    def _build_record(self, row: CuratedInteraction) -> Optional[InteractionRecord]:
        first = self.catalog.lookup(row.drug_a)
        second = self.catalog.lookup(row.drug_b)
        if first is None or second is None:
            logger.warning(f"Skipping curated interaction {row.drug_a}+{row.drug_b}: drug not in catalog")
            return None

        key = canonical_key(first.rxcui, second.rxcui)
        ref_a = self.catalog.by_id(key[0]).to_ref()
        ref_b = self.catalog.by_id(key[1]).to_ref()

        return InteractionRecord(
            drug_a=ref_a,
            drug_b=ref_b,
            severity=row.severity,
            mechanism=row.mechanism,
            effect=row.effect,
            management=row.management,
            evidence_level=row.evidence_level,
            sources=(LOCAL_SOURCE,),
            frequency=row.frequency,
            onset=row.onset,
            documentation=row.documentation,
            references=row.references,
        )

    def get(self, key: Tuple[str, str]) -> Optional[InteractionRecord]:
        """Record for a canonical (id_a, id_b) key, or None."""
        return self._records.get(key)

    def interactions_for(self, drug_id: str) -> List[InteractionRecord]:
        """Every curated record involving ``drug_id``, strongest first."""
        records = [record for record in self._records.values() if record.involves(drug_id)]
        records.sort(key=lambda r: (-r.severity.rank, r.partner_of(drug_id).generic_name))
        return records

    def all(self) -> List[InteractionRecord]:
        """Every curated record, in canonical key order."""
        return [self._records[key] for key in sorted(self._records)]

    def __len__(self) -> int:
        return len(self._records)
