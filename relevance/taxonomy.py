"""Keyword tables for tag derivation and query intent detection.

This is static configuration data. Table order matters: lookups are
first-match-wins, so earlier categories take precedence over later ones.
Extend the tables here rather than hardcoding keywords in matching code.
"""

TAXONOMY_VERSION = "beetagged-taxo-v1"

# Company name keyword -> industry category
INDUSTRY_TAXONOMY = [
    {
        "category": "Technology",
        "keywords": [
            "google", "microsoft", "apple", "amazon", "meta", "facebook",
            "netflix", "uber", "airbnb", "stripe", "slack", "zoom", "salesforce",
        ],
    },
    {
        "category": "Finance",
        "keywords": [
            "goldman", "jpmorgan", "chase", "morgan stanley", "blackrock",
            "wells fargo", "bank of america",
        ],
    },
    {
        "category": "Consulting",
        "keywords": ["mckinsey", "bain", "bcg", "deloitte", "pwc", "kpmg", "ey"],
    },
]

# Position keyword -> job function category
POSITION_TAXONOMY = [
    {"category": "Engineering", "keywords": ["engineer", "developer", "programmer"]},
    {"category": "Marketing", "keywords": ["marketing", "growth"]},
    {"category": "Sales", "keywords": ["sales", "account"]},
    {"category": "Management", "keywords": ["manager", "director", "vp", "chief"]},
    {"category": "Design", "keywords": ["design", "ux", "ui"]},
    {"category": "Product", "keywords": ["product"]},
    {"category": "Data", "keywords": ["data", "analyst", "scientist"]},
]

# Canonical city -> synonyms. Shared by tagging and query parsing.
CITY_TAXONOMY = [
    {
        "canonical": "San Francisco",
        "synonyms": ["san francisco", "sf", "san fran", "bay area"],
    },
    {
        "canonical": "New York",
        "synonyms": ["new york", "nyc", "manhattan", "brooklyn"],
    },
    {
        "canonical": "Seattle",
        "synonyms": ["seattle", "bellevue", "redmond"],
    },
    {
        "canonical": "Los Angeles",
        "synonyms": ["los angeles", "la", "hollywood", "santa monica"],
    },
    {
        "canonical": "Austin",
        "synonyms": ["austin", "atx", "austin tx", "austin texas", "round rock"],
    },
    {
        "canonical": "Boston",
        "synonyms": ["boston", "cambridge", "somerville"],
    },
    {
        "canonical": "Chicago",
        "synonyms": ["chicago", "chi town"],
    },
]

# Query-side job function vocabulary (lowercase keys are intent slot values)
JOB_FUNCTION_PATTERNS: dict[str, list[str]] = {
    "marketing": ["marketing", "marketer", "growth", "brand", "campaign", "digital marketing"],
    "engineering": ["engineer", "developer", "programmer", "software", "tech", "coding"],
    "design": ["designer", "ux", "ui", "creative", "visual", "graphic"],
    "sales": ["sales", "account", "business development", "bd", "revenue"],
    "product": ["product", "pm", "product manager", "product owner"],
    "finance": ["finance", "accounting", "financial", "analyst", "cfo"],
    "operations": ["operations", "ops", "logistics", "supply chain"],
    "hr": ["hr", "human resources", "recruiting", "recruiter", "talent"],
    "management": ["manager", "director", "vp", "ceo", "executive", "lead"],
}

INTEREST_PATTERNS: dict[str, list[str]] = {
    "sports": ["basketball", "football", "soccer", "tennis", "running", "gym"],
    "music": ["guitar", "piano", "singing", "band", "concert", "music"],
    "tech": ["coding", "programming", "ai", "blockchain", "startup"],
    "food": ["cooking", "restaurant", "foodie", "wine", "coffee"],
    "travel": ["travel", "backpacking", "adventure", "photography"],
}

TRAVEL_KEYWORDS = ["travel", "traveling", "visiting", "going to", "trip to", "in town", "vacation"]

JOB_SEARCH_KEYWORDS = ["job", "hiring", "work at", "know someone at", "introduction to", "referral"]

SKILL_HELP_PHRASES = ["help with", "know about", "expert in", "good at", "knows", "need a"]

SKILL_KEYWORDS = [
    "programmer", "developer", "designer", "marketer",
    "programming", "coding", "design", "marketing", "sales", "finance", "engineering",
]

NETWORKING_KEYWORDS = ["connect", "introduction", "meet", "know someone", "network"]

NETWORKING_TYPES: dict[str, list[str]] = {
    "professional": ["professional", "career", "business"],
    "social": ["social", "friend", "fun"],
    "industry": ["industry", "sector", "field"],
}

EMPLOYMENT_PHRASES = ["works at", "work at", "working at", "employed at", "worked at", "works for"]

PROXIMITY_PHRASES = ["near me", "nearby", "around here"]

HISTORICAL_PHRASES = ["used to", "former", "previously", "worked at"]

# Skills inferred from position/company text at import time
TECH_SKILLS = [
    "javascript", "python", "java", "react", "node.js", "aws", "docker",
    "kubernetes", "sql", "mongodb", "postgresql", "machine learning", "ai",
    "data science", "analytics", "salesforce", "hubspot", "marketing automation",
]
