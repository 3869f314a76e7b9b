# src/gestyx/smoothing/descriptors.py
"""Score-bucketed descriptive words for the composure label.

Selection is random within a bucket; callers pass their own ``random.Random``
so tests can seed it. The bank holds 600 words in ten-word rows grouped by
tone; each score bucket draws from a fixed slice of it.
"""
import random
from typing import Optional, Sequence, Tuple

NEUTRAL_LABEL = "Analyzing"  # shown before the first real selection
NO_SIGNAL_LABEL = "No signal"

DESCRIPTOR_BANK: Tuple[str, ...] = (
    # Positive - Confident and Professional
    "Confident", "Poised", "Professional", "Assured", "Composed", "Dignified", "Graceful", "Polished", "Refined", "Self-assured",
    "Authoritative", "Commanding", "Dominant", "Powerful", "Strong", "Assertive", "Bold", "Brave", "Courageous", "Determined",
    "Focused", "Attentive", "Alert", "Engaged", "Present", "Mindful", "Observant", "Perceptive", "Sharp", "Vigilant",
    "Calm", "Collected", "Cool", "Relaxed", "Serene", "Tranquil", "Peaceful", "Stable", "Steady", "Balanced",
    "Charismatic", "Charming", "Magnetic", "Captivating", "Compelling", "Dynamic", "Energetic", "Vibrant", "Animated", "Lively",
    "Articulate", "Eloquent", "Expressive", "Communicative", "Clear", "Coherent", "Lucid", "Precise", "Exact", "Accurate",
    "Trustworthy", "Credible", "Reliable", "Dependable", "Honest", "Sincere", "Genuine", "Authentic", "Real", "True",
    "Enthusiastic", "Passionate", "Motivated", "Inspired", "Driven", "Ambitious", "Eager", "Keen", "Zealous", "Fervent",
    "Respectful", "Courteous", "Polite", "Civil", "Cordial", "Gracious", "Diplomatic", "Tactful", "Considerate", "Thoughtful",
    "Adaptable", "Flexible", "Versatile", "Agile", "Responsive", "Resilient", "Resourceful", "Innovative", "Creative", "Inventive",

    # Positive - Engaged and Open
    "Approachable", "Friendly", "Warm", "Welcoming", "Inviting", "Accessible", "Available", "Receptive", "Open", "Transparent",
    "Cooperative", "Collaborative", "Supportive", "Helpful", "Accommodating", "Agreeable", "Amenable", "Willing", "Ready", "Prepared",
    "Interested", "Curious", "Inquisitive", "Questioning", "Wondering", "Intrigued", "Fascinated", "Absorbed", "Immersed", "Engrossed",
    "Optimistic", "Positive", "Hopeful", "Upbeat", "Cheerful", "Bright", "Sunny", "Radiant", "Glowing", "Beaming",
    "Empathetic", "Understanding", "Compassionate", "Sympathetic", "Caring", "Kind", "Gentle", "Tender", "Sensitive", "Perceptive",
    "Patient", "Tolerant", "Forbearing", "Enduring", "Persevering", "Persistent", "Tenacious", "Steadfast", "Unwavering", "Resolute",
    "Knowledgeable", "Informed", "Educated", "Learned", "Scholarly", "Intellectual", "Intelligent", "Bright", "Smart", "Clever",
    "Organized", "Structured", "Systematic", "Methodical", "Orderly", "Neat", "Tidy", "Precise", "Meticulous", "Thorough",
    "Decisive", "Determined", "Resolved", "Firm", "Definite", "Certain", "Sure", "Convinced", "Committed", "Dedicated",
    "Impressive", "Outstanding", "Exceptional", "Remarkable", "Notable", "Noteworthy", "Distinguished", "Eminent", "Prominent", "Leading",

    # Neutral - Moderate States
    "Neutral", "Moderate", "Balanced", "Even", "Level", "Measured", "Temperate", "Reasonable", "Rational", "Logical",
    "Cautious", "Careful", "Prudent", "Wary", "Guarded", "Reserved", "Restrained", "Controlled", "Disciplined", "Regulated",
    "Formal", "Official", "Ceremonial", "Conventional", "Traditional", "Standard", "Regular", "Ordinary", "Normal", "Typical",
    "Contemplative", "Thoughtful", "Reflective", "Pensive", "Meditative", "Introspective", "Analytical", "Critical", "Evaluative", "Judicious",
    "Watchful", "Observant", "Monitoring", "Surveying", "Scanning", "Examining", "Inspecting", "Reviewing", "Assessing", "Appraising",
    "Consistent", "Uniform", "Regular", "Steady", "Constant", "Stable", "Fixed", "Unchanging", "Invariable", "Unvarying",
    "Businesslike", "Professional", "Corporate", "Executive", "Managerial", "Administrative", "Organizational", "Operational", "Functional", "Practical",
    "Diplomatic", "Tactful", "Politic", "Strategic", "Calculated", "Planned", "Deliberate", "Intentional", "Purposeful", "Conscious",
    "Mild", "Gentle", "Soft", "Subdued", "Muted", "Understated", "Subtle", "Delicate", "Refined", "Sophisticated",
    "Adequate", "Sufficient", "Acceptable", "Satisfactory", "Passable", "Decent", "Fair", "Reasonable", "Tolerable", "Bearable",

    # Needs Improvement - Nervous and Uncertain
    "Nervous", "Anxious", "Tense", "Stressed", "Worried", "Concerned", "Troubled", "Distressed", "Agitated", "Restless",
    "Uncertain", "Unsure", "Doubtful", "Hesitant", "Tentative", "Wavering", "Vacillating", "Indecisive", "Irresolute", "Ambivalent",
    "Uncomfortable", "Uneasy", "Awkward", "Self-conscious", "Embarrassed", "Shy", "Timid", "Bashful", "Diffident", "Retiring",
    "Fidgety", "Restless", "Jittery", "Jumpy", "Edgy", "On-edge", "Skittish", "Flighty", "Fluttery", "Twitchy",
    "Distracted", "Unfocused", "Scattered", "Disorganized", "Confused", "Bewildered", "Perplexed", "Puzzled", "Baffled", "Mystified",
    "Tired", "Fatigued", "Weary", "Exhausted", "Drained", "Depleted", "Spent", "Worn-out", "Run-down", "Burnt-out",
    "Withdrawn", "Reserved", "Introverted", "Reclusive", "Isolated", "Detached", "Distant", "Remote", "Aloof", "Standoffish",
    "Stiff", "Rigid", "Tense", "Inflexible", "Unbending", "Unyielding", "Wooden", "Mechanical", "Robotic", "Artificial",
    "Passive", "Inactive", "Inert", "Lethargic", "Sluggish", "Slow", "Languid", "Listless", "Apathetic", "Indifferent",
    "Submissive", "Meek", "Docile", "Compliant", "Yielding", "Acquiescent", "Deferential", "Obedient", "Subservient", "Servile",

    # Needs Improvement - Closed and Defensive
    "Defensive", "Guarded", "Protected", "Shielded", "Closed-off", "Shut-down", "Blocked", "Barricaded", "Fortified", "Armored",
    "Resistant", "Reluctant", "Unwilling", "Disinclined", "Averse", "Opposed", "Against", "Counter", "Contrary", "Contradictory",
    "Hostile", "Aggressive", "Combative", "Confrontational", "Antagonistic", "Belligerent", "Pugnacious", "Militant", "Warlike", "Bellicose",
    "Impatient", "Restless", "Eager", "Hasty", "Rushed", "Hurried", "Precipitate", "Rash", "Impulsive", "Impetuous",
    "Arrogant", "Proud", "Haughty", "Conceited", "Vain", "Egotistical", "Self-important", "Pompous", "Pretentious", "Ostentatious",
    "Dismissive", "Contemptuous", "Scornful", "Disdainful", "Derisive", "Mocking", "Ridiculing", "Sneering", "Jeering", "Taunting",
    "Bored", "Uninterested", "Disengaged", "Disconnected", "Uninvolved", "Unconcerned", "Indifferent", "Apathetic", "Lethargic", "Listless",
    "Critical", "Judgmental", "Harsh", "Severe", "Strict", "Stern", "Austere", "Rigorous", "Stringent", "Exacting",
    "Distorted", "Twisted", "Warped", "Bent", "Crooked", "Slanted", "Tilted", "Lopsided", "Unbalanced", "Asymmetrical",
    "Slouched", "Hunched", "Stooped", "Bent-over", "Curved", "Rounded", "Drooped", "Sagging", "Slumped", "Collapsed",

    # Edge Cases and Specific States
    "Pacing", "Wandering", "Roaming", "Drifting", "Meandering", "Rambling", "Straying", "Deviating", "Digressing", "Diverging",
    "Gesturing", "Signaling", "Indicating", "Pointing", "Directing", "Guiding", "Leading", "Showing", "Demonstrating", "Illustrating",
    "Leaning", "Tilting", "Inclining", "Slanting", "Angling", "Bending", "Stooping", "Crouching", "Ducking", "Hunching",
    "Still", "Motionless", "Stationary", "Immobile", "Fixed", "Frozen", "Rigid", "Stiff", "Static", "Unmoving",
    "Dynamic", "Moving", "Active", "Mobile", "Shifting", "Changing", "Varying", "Fluctuating", "Oscillating", "Swaying",
    "Mirroring", "Reflecting", "Echoing", "Matching", "Copying", "Imitating", "Mimicking", "Emulating", "Replicating", "Duplicating",
    "Synchronized", "Coordinated", "Harmonized", "Aligned", "Matched", "Paired", "Coupled", "United", "Combined", "Integrated",
    "Expressive", "Demonstrative", "Emotional", "Passionate", "Fervent", "Ardent", "Intense", "Powerful", "Strong", "Forceful",
    "Minimal", "Restrained", "Subdued", "Controlled", "Limited", "Restricted", "Confined", "Constrained", "Inhibited", "Repressed",
    "Erect", "Upright", "Straight", "Vertical", "Perpendicular", "Standing", "Tall", "Elevated", "Raised", "Lifted",
)

# (minimum score, bank slice) from best to worst; words past 450 are never drawn
BUCKET_SLICES: Tuple[Tuple[int, slice], ...] = (
    (90, slice(0, 50)),
    (75, slice(50, 150)),
    (60, slice(150, 250)),
    (40, slice(250, 350)),
    (0, slice(350, 450)),
)

DESCRIPTOR_BUCKETS: Tuple[Tuple[int, Tuple[str, ...]], ...] = tuple(
    (floor, DESCRIPTOR_BANK[s]) for floor, s in BUCKET_SLICES
)


def bucket_for_score(score: float) -> Sequence[str]:
    for floor, words in DESCRIPTOR_BUCKETS:
        if score >= floor:
            return words
    return DESCRIPTOR_BUCKETS[-1][1]


def pick_descriptor(score: float, rng: Optional[random.Random] = None, exclude: Optional[str] = None) -> str:
    """Pick one word from the bucket for ``score``.

    ``exclude`` (the label currently shown) is skipped when the bucket has an
    alternative, so a re-selection always changes what is displayed.
    """
    rng = rng or random.Random()
    words = [w for w in bucket_for_score(score) if w != exclude] or list(bucket_for_score(score))
    return words[rng.randrange(len(words))]
