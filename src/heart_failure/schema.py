"""Column contract shared by the preparer, the preprocessing pipeline and tests."""

TARGET = "death"
SOURCE_TARGET = "death_event"

NUMERIC_PREDICTORS = [
    "age",
    "serum_creatinine",
    "creatinine_phosphokinase",
    "platelets",
    "ejection_fraction",
    "time",
]

BINARY_PREDICTORS = ["smoking", "anaemia", "diabetes", "high_blood_pressure"]

NOMINAL_PREDICTORS = ["sex"] + BINARY_PREDICTORS

PREDICTORS = [
    "age",
    "sex",
    "smoking",
    "anaemia",
    "diabetes",
    "high_blood_pressure",
    "serum_creatinine",
    "creatinine_phosphokinase",
    "platelets",
    "ejection_fraction",
    "time",
]

SEX_LEVELS = {0: "F", 1: "M"}
BINARY_LEVELS = ["0", "1"]

# predicted-probability columns, ordered by target level
PROBA_COLUMNS = ["prob_survive", "prob_die"]
