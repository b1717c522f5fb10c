"""Knowledge Base — fixed curated corpus of personal-finance guidance.

Invariants:
    - Static data: ids are stable, entries are never user-edited
    - Indexed text is "{category}: {content}" so category words influence similarity
"""

from finledger.core.records import KnowledgeEntry

KNOWLEDGE_INDEX_TYPE = "knowledge"


FINANCIAL_KNOWLEDGE: tuple[KnowledgeEntry, ...] = (
    KnowledgeEntry(
        id="budgeting-50-30-20",
        category="budgeting",
        tags=["budgeting", "savings", "planning", "money management"],
        content=(
            "The 50/30/20 rule splits take-home income three ways: 50% for needs "
            "(housing, utilities, groceries, transportation, minimum debt payments), "
            "30% for wants (dining out, entertainment, hobbies, subscriptions) and 20% "
            "for savings and extra debt payments. In high-cost areas needs may take 60%; "
            "shrink wants before shrinking savings."
        ),
    ),
    KnowledgeEntry(
        id="emergency-fund-basics",
        category="savings",
        tags=["emergency fund", "savings", "financial security", "planning"],
        content=(
            "An emergency fund covers unexpected costs such as medical bills, car repairs "
            "or job loss. Aim for 3-6 months of essential expenses, starting with a "
            "$500-$1000 cushion. Keep it in a high-yield savings account rather than "
            "investments, build it with 10-15% of each paycheck, and only touch it for "
            "real emergencies so surprises don't turn into debt."
        ),
    ),
    KnowledgeEntry(
        id="grocery-savings-tips",
        category="food",
        tags=["groceries", "food", "savings", "meal planning"],
        content=(
            "Cut grocery spending without hurting nutrition: plan meals before shopping, "
            "buy store brands (often 20-30% cheaper), use cash-back apps, buy "
            "non-perishables in bulk, plan around sales and seasonal produce, never shop "
            "hungry, freeze discounted meat in portions, and compare unit prices. A family "
            "of four typically saves $100-200 per month."
        ),
    ),
    KnowledgeEntry(
        id="credit-card-debt-payoff",
        category="debt",
        tags=["debt", "credit cards", "debt payoff", "interest"],
        content=(
            "Two payoff strategies for credit card debt. Avalanche: pay minimums "
            "everywhere and send extra money to the highest interest rate, which saves the "
            "most interest. Snowball: send extra money to the smallest balance first for "
            "quick motivating wins. With either, stop adding new charges, pay more than the "
            "minimum and consider a 0% APR balance transfer."
        ),
    ),
    KnowledgeEntry(
        id="transportation-cost-reduction",
        category="transportation",
        tags=["transportation", "car", "commute", "savings", "public transit"],
        content=(
            "Lower transportation costs by using public transit or carpooling, "
            "comparing gas prices with an app, keeping tires inflated and up with "
            "maintenance, shopping car insurance yearly and raising the deductible if you "
            "have savings, combining errands into one trip, and biking or walking short "
            "distances. Households that can drop a second car often save $5,000+ a year."
        ),
    ),
    KnowledgeEntry(
        id="subscription-audit",
        category="entertainment",
        tags=["subscriptions", "streaming", "savings", "budget cuts"],
        content=(
            "Audit subscriptions by listing every recurring charge from bank statements. "
            "Cancel anything unused in the last month, rotate streaming services instead "
            "of paying for all at once, share family plans where allowed, and prefer "
            "annual billing for services you keep. Most people find $50-150 per month in "
            "forgotten subscriptions."
        ),
    ),
    KnowledgeEntry(
        id="dining-out-savings",
        category="food",
        tags=["dining out", "restaurants", "food", "savings", "meal prep"],
        content=(
            "Dining out is often the easiest category to trim. Set a monthly restaurant "
            "budget, meal prep lunches on weekends, treat eating out as a planned event, "
            "use restaurant rewards programs, skip drinks and appetizers, and try lunch "
            "menus instead of dinner. Replacing three restaurant lunches a week with "
            "packed ones saves about $150-200 per month."
        ),
    ),
    KnowledgeEntry(
        id="housing-cost-optimization",
        category="housing",
        tags=["housing", "rent", "mortgage", "savings", "real estate"],
        content=(
            "Housing should stay near or below 30% of gross income. Options to reduce it: "
            "negotiate rent at renewal, take a roommate, refinance when rates drop, appeal "
            "property tax assessments, cut utility use with a programmable thermostat and "
            "LED bulbs, and shop renters or homeowners insurance annually. Moving to a "
            "cheaper area is the largest lever when everything else is exhausted."
        ),
    ),
    KnowledgeEntry(
        id="healthcare-cost-reduction",
        category="healthcare",
        tags=["healthcare", "insurance", "medical", "prescriptions", "HSA"],
        content=(
            "Reduce healthcare costs by staying in network, using generic prescriptions "
            "and mail-order pharmacies, choosing urgent care or telehealth over the "
            "emergency room for non-emergencies, using an HSA or FSA for pre-tax dollars, "
            "reviewing medical bills for errors, and asking about cash-pay discounts. "
            "Preventive care is usually covered in full."
        ),
    ),
    KnowledgeEntry(
        id="impulse-purchase-prevention",
        category="shopping",
        tags=["impulse buying", "shopping", "savings", "psychology", "budget"],
        content=(
            "Curb impulse purchases with a 24-hour rule for anything non-essential (30 "
            "days for large items), unsubscribe from retail emails, remove saved cards "
            "from shopping sites, shop with a list, and use cash for discretionary "
            "categories. Ask whether you would buy it at full price and where it will "
            "live in your home."
        ),
    ),
    KnowledgeEntry(
        id="side-hustle-ideas",
        category="income",
        tags=["side hustle", "income", "freelance", "gig economy", "extra money"],
        content=(
            "Extra income ideas: freelance writing, design or programming; tutoring; "
            "delivery and rideshare driving; pet sitting; selling unused items; and paid "
            "surveys for small amounts. Treat side income deliberately: send a fixed share "
            "to savings or debt payoff and set aside money for taxes on self-employment "
            "income."
        ),
    ),
    KnowledgeEntry(
        id="retirement-savings-basics",
        category="retirement",
        tags=["retirement", "401k", "IRA", "investing", "savings", "compound interest"],
        content=(
            "Retirement basics: always contribute enough to a 401(k) to get the full "
            "employer match, then fund a Roth or traditional IRA, then return to the "
            "401(k). Low-cost index funds suit most savers. Starting early matters most "
            "because of compound interest; aim to save 15% of income including any "
            "match, and raise contributions with every raise."
        ),
    ),
)


def knowledge_document(entry: KnowledgeEntry) -> str:
    """Text that gets embedded for an entry."""
    return f"{entry.category}: {entry.content}"


def knowledge_metadata(entry: KnowledgeEntry) -> dict:
    return {
        "indexType": KNOWLEDGE_INDEX_TYPE,
        "content": entry.content,
        "category": entry.category,
        "tags": list(entry.tags),
        "source": entry.source,
    }