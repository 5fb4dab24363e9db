"""
Default Impact Assessment Questionnaire

Questions organized by section:
1. Risk - financial and operational risk exposure (higher = riskier)
2. Impact - depth and reach of social or environmental impact
3. Return - commercial traction and margin potential
4. Sector Maturity - how developed the enterprise's market is
5. Feedback - unscored satisfaction question

Each question has:
- Code and section assignment
- Question text and help text
- Options with points, or slider dimensions with points per unit
- Optional conditions that hide the question for some answers

Deployments replace this bank with an admin-authored JSON file
(QUESTION_BANK_PATH); the format is identical to the dictionaries below.
"""

from typing import Dict, List, Any

from .questions import QuestionBank, load_question_bank

# Section definitions with weights (must sum to 1)
SECTIONS: List[Dict[str, Any]] = [
    {
        "code": "RISK",
        "title": "Risk",
        "order": 1,
        "weight": "0.30",
        "description": "How exposed is the enterprise to financial and operational shocks?"
    },
    {
        "code": "IMPACT",
        "title": "Impact",
        "order": 2,
        "weight": "0.40",
        "description": "How deep and how broad is the impact the enterprise creates?"
    },
    {
        "code": "RETURN",
        "title": "Return",
        "order": 3,
        "weight": "0.20",
        "description": "How strong is the commercial case for investors?"
    },
    {
        "code": "SECTOR_MATURITY",
        "title": "Sector Maturity",
        "order": 4,
        "weight": "0.10",
        "description": "How established is the market the enterprise operates in?"
    },
    {
        "code": "FEEDBACK",
        "title": "Feedback",
        "order": 5,
        "weight": "0.00",
        "description": "Tell us about your experience with the assessment."
    }
]

YES_NO_OPTIONS = [
    {"label": "Yes", "value": "YES", "points": 10},
    {"label": "No", "value": "NO", "points": 0}
]

# Five point rating scale, 0-10 points
RATING_OPTIONS = [
    {"label": "1 - Very weak", "value": "1", "points": 0},
    {"label": "2 - Weak", "value": "2", "points": 2.5},
    {"label": "3 - Moderate", "value": "3", "points": 5},
    {"label": "4 - Strong", "value": "4", "points": 7.5},
    {"label": "5 - Very strong", "value": "5", "points": 10}
]

NPS_OPTIONS = [
    {"label": str(score), "value": str(score), "points": 0}
    for score in range(11)
]


ASSESSMENT_QUESTIONS: List[Dict[str, Any]] = [
    # =========================================================================
    # RISK
    # =========================================================================
    {
        "code": "RISK_Q1",
        "section": "RISK",
        "order": 1,
        "type": "SINGLE_CHOICE",
        "text": "Are your financial statements audited by an external auditor?",
        "help_text": "Audited accounts for the last financial year.",
        "options": [
            {"label": "Yes", "value": "YES", "points": 0},
            {"label": "No", "value": "NO", "points": 10}
        ],
        "weight": 1.0
    },
    {
        "code": "RISK_Q2",
        "section": "RISK",
        "order": 2,
        "type": "SINGLE_CHOICE",
        "text": "Do you maintain monthly management accounts?",
        "help_text": "Asked only when statements are not externally audited.",
        "options": [
            {"label": "Yes, reviewed by a finance lead", "value": "REVIEWED", "points": 2},
            {"label": "Yes, but not reviewed", "value": "UNREVIEWED", "points": 6},
            {"label": "No", "value": "NONE", "points": 10}
        ],
        "weight": 1.0,
        "conditions": [
            {"question": "RISK_Q1", "op": "eq", "value": "NO", "section": "RISK"}
        ]
    },
    {
        "code": "RISK_Q3",
        "section": "RISK",
        "order": 3,
        "type": "SLIDER",
        "text": "What share of revenue comes from your single largest customer (%)?",
        "help_text": "Drag to the closest percentage.",
        "dimensions": [
            {"code": "RISK_Q3", "label": "Largest customer share", "min": 0, "max": 100,
             "points_per_unit": 0.1}
        ],
        "weight": 1.0
    },
    {
        "code": "RISK_Q4",
        "section": "RISK",
        "order": 4,
        "type": "MULTI_CHOICE",
        "text": "Which of the following risks has the enterprise faced in the last two years?",
        "help_text": "Select all that apply.",
        "options": [
            {"label": "Supply chain disruption", "value": "SUPPLY", "points": 2.5},
            {"label": "Regulatory change", "value": "REGULATORY", "points": 2.5},
            {"label": "Loss of a key team member", "value": "KEY_PERSON", "points": 2.5},
            {"label": "Currency or commodity price shocks", "value": "PRICE", "points": 2.5},
            {"label": "None of the above", "value": "NONE", "points": 0}
        ],
        "weight": 0.5
    },
    {
        "code": "RISK_Q5",
        "section": "RISK",
        "order": 5,
        "type": "RATING",
        "text": "How dependent is the business on external grant funding?",
        "help_text": "1 = not dependent, 5 = fully dependent.",
        "options": RATING_OPTIONS,
        "weight": 1.0
    },

    # =========================================================================
    # IMPACT
    # =========================================================================
    {
        "code": "IMP_Q1",
        "section": "IMPACT",
        "order": 1,
        "type": "SINGLE_CHOICE",
        "text": "Do you measure the outcomes of your work for beneficiaries?",
        "help_text": "Outcome data, not only activity counts.",
        "options": [
            {"label": "Yes, systematically", "value": "YES", "points": 10},
            {"label": "Partially", "value": "PARTIAL", "points": 5},
            {"label": "No", "value": "NO", "points": 0}
        ],
        "weight": 1.5
    },
    {
        "code": "IMP_Q2",
        "section": "IMPACT",
        "order": 2,
        "type": "MULTI_SLIDER",
        "text": "Rate the reach and depth of the outcomes you measure.",
        "help_text": "Reach: how many people. Depth: how much their lives change.",
        "dimensions": [
            {"code": "REACH", "label": "Reach", "min": 0, "max": 10, "points_per_unit": 1},
            {"code": "DEPTH", "label": "Depth", "min": 0, "max": 10, "points_per_unit": 1}
        ],
        "weight": 1.0,
        "conditions": [
            {"question": "IMP_Q1", "op": "eq", "value": "YES", "section": "IMPACT"}
        ]
    },
    {
        "code": "IMP_Q3",
        "section": "IMPACT",
        "order": 3,
        "type": "RATING",
        "text": "How strongly is impact embedded in your business model?",
        "help_text": "1 = a side activity, 5 = revenue grows only with impact.",
        "options": RATING_OPTIONS,
        "weight": 1.0
    },
    {
        "code": "IMP_Q4",
        "section": "IMPACT",
        "order": 4,
        "type": "MULTIPLE_CHOICE",
        "text": "Which Sustainable Development Goals does your work contribute to?",
        "help_text": "Select all that apply.",
        "options": [
            {"label": "No poverty", "value": "SDG1", "points": 2},
            {"label": "Zero hunger", "value": "SDG2", "points": 2},
            {"label": "Good health and well-being", "value": "SDG3", "points": 2},
            {"label": "Quality education", "value": "SDG4", "points": 2},
            {"label": "Climate action", "value": "SDG13", "points": 2}
        ],
        "weight": 0.5
    },

    # =========================================================================
    # RETURN
    # =========================================================================
    {
        "code": "RET_Q1",
        "section": "RETURN",
        "order": 1,
        "type": "SINGLE_CHOICE",
        "text": "What is your current revenue stage?",
        "options": [
            {"label": "Pre-revenue", "value": "PRE_REVENUE", "points": 0},
            {"label": "Early revenue", "value": "EARLY", "points": 4},
            {"label": "Growing revenue", "value": "GROWING", "points": 7},
            {"label": "Profitable", "value": "PROFITABLE", "points": 10}
        ],
        "weight": 1.5
    },
    {
        "code": "RET_Q2",
        "section": "RETURN",
        "order": 2,
        "type": "SLIDER",
        "text": "What is your gross margin (%)?",
        "min": 0,
        "max": 80,
        "points_per_unit": 0.125,
        "weight": 1.0
    },
    {
        "code": "RET_Q3",
        "section": "RETURN",
        "order": 3,
        "type": "SINGLE_CHOICE",
        "text": "Have you been profitable for at least two consecutive years?",
        "options": YES_NO_OPTIONS,
        "weight": 1.0,
        "conditions": [
            {"question": "RET_Q1", "op": "eq", "value": "PROFITABLE", "section": "RETURN"}
        ]
    },

    # =========================================================================
    # SECTOR MATURITY
    # =========================================================================
    {
        "code": "SEC_Q1",
        "section": "SECTOR_MATURITY",
        "order": 1,
        "type": "RATING",
        "text": "How established are comparable enterprises in your sector?",
        "options": RATING_OPTIONS,
        "weight": 1.0
    },
    {
        "code": "SEC_Q2",
        "section": "SECTOR_MATURITY",
        "order": 2,
        "type": "SINGLE_CHOICE",
        "text": "Is there an enabling policy framework for your sector?",
        "options": [
            {"label": "Yes, well established", "value": "ESTABLISHED", "points": 10},
            {"label": "Emerging", "value": "EMERGING", "points": 5},
            {"label": "No", "value": "NONE", "points": 0}
        ],
        "weight": 1.0
    },

    # =========================================================================
    # FEEDBACK
    # =========================================================================
    {
        "code": "FB_Q1",
        "section": "FEEDBACK",
        "order": 1,
        "type": "NPS",
        "text": "How likely are you to recommend this assessment to a peer?",
        "options": NPS_OPTIONS,
        "required": False,
        "weight": 0
    }
]


def create_default_question_bank() -> QuestionBank:
    """Factory function for the built-in questionnaire"""
    return load_question_bank(SECTIONS, ASSESSMENT_QUESTIONS)
