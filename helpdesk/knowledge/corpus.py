# Curated statutory provisions used as grounding context for notice drafting.
# Only the retrieval interface is relied on elsewhere; entries can be swapped
# for a larger corpus without code changes.

PROVISIONS = [
    {
        "id": "cpa_2019_complaint",
        "keywords": ["consumer", "product", "defective", "fake", "counterfeit", "complaint", "warranty", "उपभोक्ता", "शिकायत"],
        "law_name": "Consumer Protection Act, 2019",
        "section": "Sections 34-37",
        "summary": "Consumers can file complaints for defective goods, deficient services, unfair trade practices, or misleading advertisements. District, State, and National Commissions handle disputes.",
        "source_url": "https://indiankanoon.org/doc/110359706/",
    },
    {
        "id": "cpa_2019_unfair_trade",
        "keywords": ["unfair", "misleading", "advertisement", "fake", "counterfeit", "e-commerce", "seller"],
        "law_name": "Consumer Protection Act, 2019",
        "section": "Section 2(47)",
        "summary": "Unfair trade practice includes falsely representing goods to be of a particular standard, quality or grade, and refusing to take back defective goods or refund consideration within the stipulated period.",
        "source_url": "https://indiankanoon.org/doc/110359706/",
    },
    {
        "id": "ecommerce_rules_2020",
        "keywords": ["refund", "return", "e-commerce", "online", "order", "delivery", "marketplace", "grievance", "रिफंड"],
        "law_name": "Consumer Protection (E-Commerce) Rules, 2020",
        "section": "Rules 4-6",
        "summary": "E-commerce entities must appoint a grievance officer, acknowledge complaints within 48 hours and redress them within one month, and must not refuse returns or refunds for defective, deficient or spurious goods.",
        "source_url": "https://consumeraffairs.nic.in/acts-and-rules/consumer-protection",
    },
    {
        "id": "ipc_420",
        "keywords": ["fraud", "cheating", "scam", "dishonesty", "cheat", "धोखाधड़ी"],
        "law_name": "Indian Penal Code, 1860",
        "section": "Section 420",
        "summary": "Cheating and dishonestly inducing delivery of property. Punishment up to 7 years imprisonment and fine.",
        "source_url": "https://indiankanoon.org/doc/1306824/",
    },
    {
        "id": "it_act_66d",
        "keywords": ["online fraud", "phishing", "impersonation", "cyber", "website", "app"],
        "law_name": "Information Technology Act, 2000",
        "section": "Section 66D",
        "summary": "Cheating by personation using a computer resource or communication device is punishable with imprisonment up to 3 years and fine up to one lakh rupees.",
        "source_url": "https://indiankanoon.org/doc/121790054/",
    },
    {
        "id": "cheque_bounce",
        "keywords": ["cheque", "check", "bounce", "dishonour", "negotiable", "चेक बाउंस"],
        "law_name": "Negotiable Instruments Act, 1881",
        "section": "Section 138",
        "summary": "Dishonour of cheque for insufficiency of funds is a criminal offence. Complaint must be filed within 30 days of receiving bank memo. Punishment up to 2 years or twice the cheque amount.",
        "source_url": "https://indiankanoon.org/doc/1823824/",
    },
]
