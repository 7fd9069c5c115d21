"""
Quality measure mappings from the measures spreadsheet export to the measures schema.

Columns are indexed from 0; the provided spreadsheet has a leftmost blank
column, so measure data starts at index 1.
"""

# mapping from quality measures csv column numbers to submission method
SUBMISSION_METHODS = {
    10: "claims",
    11: "certifiedSurveyVendor",
    12: "electronicHealthRecord",
    13: "cmsWebInterface",
    14: "administrativeClaims",
    15: "registry",
}

# mapping from quality measures csv column numbers to measure sets
MEASURE_SETS = {
    16: "allergyImmunology",
    17: "anesthesiology",
    18: "cardiology",
    19: "dermatology",
    20: "diagnosticRadiology",
    21: "electrophysiologyCardiacSpecialist",
    22: "emergencyMedicine",
    23: "gastroenterology",
    24: "generalOncology",
    25: "generalPracticeFamilyMedicine",
    26: "generalSurgery",
    27: "hospitalists",
    28: "internalMedicine",
    29: "interventionalRadiology",
    30: "mentalBehavioralHealth",
    31: "neurology",
    32: "obstetricsGynecology",
    33: "ophthalmology",
    34: "orthopedicSurgery",
    35: "otolaryngology",
    36: "pathology",
    37: "pediatrics",
    38: "physicalMedicine",
    39: "plasticSurgery",
    40: "preventiveMedicine",
    41: "radiationOncology",
    42: "rheumatology",
    43: "thoracicSurgery",
    44: "urology",
    45: "vascularSurgery",
}

# keys must be lowercase, they are matched against trimmed lowercase cells
MEASURE_TYPES = {
    "process": "process",
    "outcome": "outcome",
    "patient engagement/experience": "patientEngagementExperience",
    "efficiency": "efficiency",
    "intermediate outcome": "intermediateOutcome",
    "structure": "structure",
    "patient reported outcome": "outcome",
    "composite": "outcome",
    "cost/resource use": "efficiency",
    "clinical process effectiveness": "process",
}

QUALITY_MEASURES_MAPPINGS = [
    {
        "id": "source_quality_measures_2018",
        "metadata": {
            "source_name": "Quality Measures",
            "source_type": "csv",
            "performance_year": 2018,
            "schema_type": "measures",
            "identifier_field": "measureId",
            "notes": "2018 quality measures export, paired with the performance rate strata export",
        },
        # same for every measure built from this export
        "constant_fields": {
            "category": "quality",
            "isRegistryMeasure": False,
            "isRiskAdjusted": False,
        },
        "sourced_fields": {
            "title": 1,
            "eMeasureId": 2,
            "nqfEMeasureId": 3,
            "nqfId": 4,
            "measureId": 5,
            "description": 6,
            "nationalQualityStrategyDomain": 7,
            "measureType": {
                "index": 8,
                "mappings": MEASURE_TYPES,
            },
            "primarySteward": 9,
            "metricType": 51,
            "firstPerformanceYear": {
                "index": 52,
                "default": 2017,
            },
            "lastPerformanceYear": {
                "index": 53,
                "default": None,
            },
            "isHighPriority": {
                "index": 55,
                "default": False,
            },
            "isInverse": {
                "index": 56,
                "default": False,
            },
            "overallAlgorithm": 60,
        },
        "flag_fields": {
            "submissionMethods": SUBMISSION_METHODS,
            "measureSets": MEASURE_SETS,
        },
        # performance rate strata: one row per stratum, keyed by measure id
        "sub_records": {
            "target_field": "strata",
            "foreign_key": 0,
            "fields": {
                "name": 1,
                "description": 3,
            },
        },
    },
]
