# backend/rxmanager/services/dose_rules.py

# Maximum daily dose per medication. Only applied when the prescription unit
# matches "unit" exactly; no unit conversion is attempted.
DOSE_LIMITS = {
    "acetaminophen": {
        "max_daily_dose": 4000,
        "unit": "mg",
        "period": "24h"
    },
    "ibuprofen": {
        "max_daily_dose": 3200,
        "unit": "mg",
        "period": "24h"
    },
    "amoxicillin": {
        "max_daily_dose": 6000,
        "unit": "mg",
        "period": "24h"
    }
}

# Maximum treatment duration in days.
DURATION_LIMITS = {
    "prednisone": 14,
    "hydrocodone": 7,
    "oxycodone": 7
}

# Minimum hours between doses before FREQUENCY_TOO_HIGH fires.
MIN_FREQUENCY_HOURS = 4
