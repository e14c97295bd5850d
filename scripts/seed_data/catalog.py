"""
Reference catalog — West Africa media & governance programme taxonomy.

 5 Programme areas
17 Activity types
11 Thematic focus areas
12 Target groups
18 Countries, 16 Ghana regions, 3 Ghana cities
 8 Funders
"""

PROGRAMME_AREAS = [
    ("Media Development and Freedom of Expression", "MDGG"),
    ("Digital Rights & Technology", "FoE & Digital Rights"),
    ("Fourth Estate", "Investigative Journalism"),
    ("Institutional Development & MEL", "ID & MEL"),
    ("Finance", "Financial Governance"),
]

ACTIVITY_TYPES = [
    "Awareness and Media Campaigns",
    "Conferences and Seminars",
    "Content Production and Publications",
    "Coordination and Review Meetings",
    "Fellowships and Mentorship Programmes",
    "Investigative Reporting Activities",
    "Learning and Knowledge-Sharing Events",
    "Media Monitoring",
    "Monitoring Visits",
    "Policy Dialogues and Stakeholder Consultations",
    "Project Launch and Dissemination Events",
    "Research Studies and Surveys",
    "Roundtables and Public Forums",
    "Study and Exchange Visits",
    "Training and Workshops",
    "Other",
]

THEMATIC_FOCUS = [
    "Accountability, Anti-Corruption, and Transparency",
    "Climate Change, Environment, and Natural Resources",
    "Democracy, Governance, and Human Rights",
    "Digital Rights, Technology, and Information Integrity",
    "Economic Governance, Finance, and Tax Justice",
    "Education, Media Literacy, and Capacity Development",
    "Gender Equality and Social Inclusion",
    "Health and Public Interest Communication",
    "Media Development and Freedom of Expression",
    "Peace, Security, and Social Cohesion",
    "Other",
]

TARGET_GROUPS = [
    "Academia and Researchers",
    "Citizens and Communities in Target Locations",
    "Civil Society Organisations (CSOs) and Community-Based Organisations (CBOs)",
    "Community Leaders and Local Authorities",
    "Democratic Institutions and Society at Large",
    "General Public",
    "Government Institutions, Policy Makers, and Regulatory Bodies",
    "Journalists, Media Professionals, and Media Organisations",
    "Private Sector Actors",
    "Vulnerable and Marginalised Populations (including PWDs)",
    "Women and Youth Groups",
    "Other",
]

COUNTRIES = [
    "Benin", "Burkina Faso", "Cape Verde", "Côte d'Ivoire", "Gambia", "Ghana",
    "Guinea", "Guinea-Bissau", "Liberia", "Mali", "Niger", "Nigeria", "Senegal",
    "Sierra Leone", "Togo", "Central African Republic", "Other",
]

GHANA_REGIONS = [
    "Ashanti Region", "Ahafo Region", "Bono East Region", "Bono Region",
    "Central Region", "Eastern Region", "Greater Accra Region", "North East Region",
    "Northern Region", "Oti Region", "Savannah Region", "Upper East Region",
    "Upper West Region", "Volta Region", "Western North Region", "Western Region",
]

# city → region
GHANA_CITIES = {
    "Accra": "Greater Accra Region",
    "Kumasi": "Ashanti Region",
    "Tamale": "Northern Region",
}

FUNDERS = [
    "GIZ (German International Cooperation)",
    "World Bank",
    "African Union",
    "USAID",
    "EU Delegation",
    "Ford Foundation",
    "Open Society Foundations",
    "Transparency International",
]
