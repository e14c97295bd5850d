"""
Demo users, projects, activities and finance lines.

4 Users      (1 admin, 1 manager, 2 field agents)
5 Projects   (memberships by user email)
10 Activities (every third one VALIDATED, the rest SUBMITTED)
5 Finance lines
"""

USERS = [
    {"email": "admin@tracker.com", "name": "Admin User", "role": "ADMIN", "password": "Admin@123"},
    {"email": "manager@tracker.com", "name": "Project Manager", "role": "MANAGER", "password": "Manager@123"},
    {"email": "agent1@tracker.com", "name": "Field Agent 1", "role": "FIELD", "password": "Agent@123"},
    {"email": "agent2@tracker.com", "name": "Field Agent 2", "role": "FIELD", "password": "Agent@123"},
]

PROJECTS = [
    {"name": "Media Integrity Initiative", "slug": "media-integrity",
     "description": "Strengthening media integrity and digital literacy across West Africa",
     "members": ["admin@tracker.com", "manager@tracker.com"]},
    {"name": "Governance & Democracy", "slug": "governance-democracy",
     "description": "Promoting transparent governance and democratic participation",
     "members": ["manager@tracker.com", "agent1@tracker.com"]},
    {"name": "Digital Rights Advocacy", "slug": "digital-rights",
     "description": "Defending digital rights and fighting cyber threats",
     "members": ["agent1@tracker.com", "agent2@tracker.com"]},
    {"name": "Financial Accountability", "slug": "financial-accountability",
     "description": "Ensuring financial transparency in public institutions",
     "members": ["manager@tracker.com", "agent2@tracker.com"]},
    {"name": "Community Empowerment", "slug": "community-empowerment",
     "description": "Empowering communities through civic education",
     "members": ["agent1@tracker.com"]},
]

# locations: (country, region, city); region/city may be None
ACTIVITIES = [
    {"title": "Media Training Workshop on Fact-Checking", "project": "media-integrity",
     "creator": "manager@tracker.com",
     "locations": [("Ghana", "Greater Accra Region", "Accra")],
     "activity_types": ["Training and Workshops"],
     "thematic_focus": ["Media Development and Freedom of Expression"],
     "target_groups": ["Journalists, Media Professionals, and Media Organisations"],
     "funders": ["GIZ (German International Cooperation)"]},
    {"title": "Policy Dialogue on Digital Rights", "project": "digital-rights",
     "creator": "agent1@tracker.com",
     "locations": [("Guinea", None, None)],
     "activity_types": ["Policy Dialogues and Stakeholder Consultations"],
     "thematic_focus": ["Digital Rights, Technology, and Information Integrity"],
     "target_groups": ["Government Institutions, Policy Makers, and Regulatory Bodies",
                       "Journalists, Media Professionals, and Media Organisations"],
     "funders": ["World Bank", "EU Delegation"]},
    {"title": "Investigative Reporting on Corruption", "project": "media-integrity",
     "creator": "manager@tracker.com",
     "locations": [("Ghana", "Ashanti Region", "Kumasi")],
     "activity_types": ["Investigative Reporting Activities"],
     "thematic_focus": ["Accountability, Anti-Corruption, and Transparency"],
     "target_groups": ["Journalists, Media Professionals, and Media Organisations",
                       "Citizens and Communities in Target Locations"],
     "funders": ["Ford Foundation"]},
    {"title": "Youth Civic Education Campaign", "project": "community-empowerment",
     "creator": "agent1@tracker.com",
     "locations": [("Ghana", "Northern Region", "Tamale")],
     "activity_types": ["Awareness and Media Campaigns"],
     "thematic_focus": ["Democracy, Governance, and Human Rights"],
     "target_groups": ["Women and Youth Groups", "Citizens and Communities in Target Locations"],
     "funders": ["USAID"]},
    {"title": "Financial Transparency Workshop", "project": "financial-accountability",
     "creator": "agent2@tracker.com",
     "locations": [("Guinea", None, None)],
     "activity_types": ["Training and Workshops", "Policy Dialogues and Stakeholder Consultations"],
     "thematic_focus": ["Economic Governance, Finance, and Tax Justice"],
     "target_groups": ["Government Institutions, Policy Makers, and Regulatory Bodies"],
     "funders": ["GIZ (German International Cooperation)", "African Union"]},
    {"title": "Research Study on Media Ownership", "project": "media-integrity",
     "creator": "manager@tracker.com",
     "locations": [("Ghana", "Greater Accra Region", "Accra"), ("Guinea", None, None)],
     "activity_types": ["Research Studies and Surveys"],
     "thematic_focus": ["Media Development and Freedom of Expression"],
     "target_groups": ["Academia and Researchers",
                       "Journalists, Media Professionals, and Media Organisations"],
     "funders": ["World Bank"]},
    {"title": "Conference on Democracy & Governance", "project": "governance-democracy",
     "creator": "manager@tracker.com",
     "locations": [("Ghana", "Greater Accra Region", "Accra")],
     "activity_types": ["Conferences and Seminars"],
     "thematic_focus": ["Democracy, Governance, and Human Rights"],
     "target_groups": ["Civil Society Organisations (CSOs) and Community-Based Organisations (CBOs)",
                       "Government Institutions, Policy Makers, and Regulatory Bodies",
                       "Academia and Researchers"],
     "funders": ["EU Delegation", "Ford Foundation"]},
    {"title": "Content Series on Gender Equality", "project": "governance-democracy",
     "creator": "agent1@tracker.com",
     "locations": [("Ghana", "Ashanti Region", "Kumasi")],
     "activity_types": ["Content Production and Publications"],
     "thematic_focus": ["Gender Equality and Social Inclusion"],
     "target_groups": ["Women and Youth Groups", "Citizens and Communities in Target Locations"],
     "funders": ["GIZ (German International Cooperation)"]},
    {"title": "Digital Security Training for Journalists", "project": "digital-rights",
     "creator": "agent2@tracker.com",
     "locations": [("Guinea", None, None)],
     "activity_types": ["Training and Workshops"],
     "thematic_focus": ["Digital Rights, Technology, and Information Integrity"],
     "target_groups": ["Journalists, Media Professionals, and Media Organisations"],
     "funders": ["USAID"]},
    {"title": "Community Monitoring & Advocacy Forum", "project": "community-empowerment",
     "creator": "agent1@tracker.com",
     "locations": [("Ghana", "Northern Region", "Tamale")],
     "activity_types": ["Policy Dialogues and Stakeholder Consultations"],
     "thematic_focus": ["Accountability, Anti-Corruption, and Transparency",
                        "Democracy, Governance, and Human Rights"],
     "target_groups": ["Citizens and Communities in Target Locations", "Women and Youth Groups"],
     "funders": ["African Union"]},
]

NARRATIVE = {
    "immediate_outcomes": "Participants gained knowledge on the topic and shared insights with their networks.",
    "skills_gained": "Critical thinking, fact-checking, digital literacy, and communication skills.",
    "actions_taken": "Participants committed to implementing lessons learned in their respective organizations.",
    "policies_influenced": "Contributed to draft guidelines on digital security.",
    "institutional_changes": "One institution adopted new content verification procedures.",
    "commitments_secured": "CSOs committed to collaborative monitoring efforts.",
    "media_mentions": "Featured in local radio stations and online publications.",
    "publications_produced": "2 research briefs and 1 policy brief published.",
    "gender_outcomes": "60% female participation, improved women's representation in discussions.",
    "existing_partnerships": "Strengthened partnerships with 3 CSOs and 2 government institutions.",
    "new_partnerships": "Established new relationship with university research center.",
}

FINANCES = [
    {"project": "media-integrity", "funder": "GIZ", "amount": "50000", "currency": "USD",
     "year": 2024, "status": "CONTINUOUS", "notes": "Annual funding for media integrity initiatives"},
    {"project": "governance-democracy", "funder": "World Bank", "amount": "75000", "currency": "USD",
     "year": 2024, "status": "NEW", "notes": "One-time grant for governance project"},
    {"project": "digital-rights", "funder": "EU Delegation", "amount": "60000", "currency": "EUR",
     "year": 2024, "status": "CONTINUOUS", "notes": "Quarterly disbursement"},
    {"project": "financial-accountability", "funder": "African Union", "amount": "40000", "currency": "USD",
     "year": 2024, "status": "NEW", "notes": "Regional initiative funding"},
    {"project": "community-empowerment", "funder": "Ford Foundation", "amount": "35000", "currency": "USD",
     "year": 2024, "status": "CONTINUOUS", "notes": "Community empowerment program"},
]
