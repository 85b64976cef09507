"""Survey constants shared across the SDK.

These values are referenced by the sequencer, assembler, and catalog.
They mirror conventions encoded in the question catalog under ``catalog/``.
"""

# Sections every respondent walks through, in order.
BASE_SECTIONS: list[str] = ["profile", "problems"]

# Discriminator answer (declared user type) → the one role-specific
# section appended after BASE_SECTIONS.
USER_TYPE_SECTIONS: dict[str, str] = {
    "Farmer": "farmer",
    "Agricultural Expert": "expert",
    "Administrator": "admin",
}

# Field name of the discriminator question inside the profile group.
DISCRIMINATOR_FIELD = "userType"

# Rule path that ties a question to the discriminator answer.
USER_TYPE_PATH = f"profile.{DISCRIMINATOR_FIELD}"

# Section → submission record group.
SECTION_GROUPS: dict[str, str] = {
    "profile": "profile",
    "problems": "problems",
    "farmer": "farmerFeatures",
    "expert": "expertFeatures",
    "admin": "adminFeatures",
}

# Question label → normalised field name in the submission record.
# Labels missing here fall back to a slug (see catalog.field_name_for).
LABEL_FIELDS: dict[str, str] = {
    "County *": "county",
    "User type *": "userType",
    "Age *": "age",
    "Gender": "gender",
    "Device access *": "deviceAccess",
    "How often do you face crop losses due to pests/diseases/poor advice? *": "cropLossFrequency",
    "Main source of farming advice today? (select all)": "adviceSources",
    "In the last 12 months, how many times did you speak to a verified expert? *": "expertContactCount",
    "Ever lost money due to wrong advice?": "lostMoney",
    "Would you use stage-by-stage crop guides for your region?": "useCropGuides",
    "How useful is an AI assistant that speaks local terms? (1–5)": "aiAssistantUsefulness",
    "Would you pay via M-Pesa for a 30-min expert chat?": "payForExpertChat",
    "Top 3 topics you'd book an expert for?": "expertTopics",
    "Would you join a moderated forum?": "joinForum",
    "Internet reliability at farm?": "internetReliability",
    "Would you offer paid consultations (KES 200–500)?": "offerPaidConsultations",
    "Preferred consultation format?": "preferredFormat",
    "How many farmers could you consult weekly?": "weeklyConsultationCapacity",
    "Would you use a regional dashboard?": "useDashboard",
    "What would make you switch to MkulimaHub?": "switchReasons",
}

# Error token surfaced per field by the step validator.
REQUIRED_ERROR = "Required"

# Human-readable section titles for steppers, exports and the CLI.
SECTION_TITLES: dict[str, str] = {
    "profile": "Profile",
    "problems": "Problems",
    "farmer": "Farmer Features",
    "expert": "Expert Features",
    "admin": "Admin Features",
}

CHOICE_TYPES: set[str] = {"dropdown", "radio", "checkbox"}
