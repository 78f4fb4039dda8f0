"""Badge catalog: every unlockable badge with its display data.

The unlock rule for each type lives in trigger_engine.BADGE_RULES.
"""

from __future__ import annotations

from focusflow.gamification.schemas import BadgeDefinition, BadgeRarity

BADGE_DEFINITIONS: list[dict] = [
    # Getting started
    {"type": "first_focus", "name": "First Steps", "description": "Complete your first challenge", "icon": "🌱", "rarity": "common", "category": "getting_started"},
    {"type": "first_perfect", "name": "Nailed It", "description": "Get your first perfect score", "icon": "⭐", "rarity": "common", "category": "getting_started"},
    {"type": "first_session", "name": "Day One", "description": "Complete your first daily session", "icon": "📅", "rarity": "common", "category": "getting_started"},
    {"type": "first_streak", "name": "Keep Going", "description": "Maintain a 2-day streak", "icon": "🔥", "rarity": "common", "category": "getting_started"},
    {"type": "onboarding_complete", "name": "Ready to Roll", "description": "Complete the onboarding", "icon": "🎓", "rarity": "common", "category": "getting_started"},
    # Challenge milestones
    {"type": "challenges_10", "name": "Getting Warmed Up", "description": "Complete 10 challenges", "icon": "🏃", "rarity": "common", "category": "challenges"},
    {"type": "challenges_25", "name": "Building Momentum", "description": "Complete 25 challenges", "icon": "🏃‍♂️", "rarity": "common", "category": "challenges"},
    {"type": "challenges_50", "name": "Half Century", "description": "Complete 50 challenges", "icon": "🎯", "rarity": "uncommon", "category": "challenges"},
    {"type": "challenges_100", "name": "Century Club", "description": "Complete 100 challenges", "icon": "💯", "rarity": "uncommon", "category": "challenges"},
    {"type": "challenges_250", "name": "Dedicated Trainer", "description": "Complete 250 challenges", "icon": "🏋️", "rarity": "rare", "category": "challenges"},
    {"type": "challenges_500", "name": "Focus Veteran", "description": "Complete 500 challenges", "icon": "🎖️", "rarity": "epic", "category": "challenges"},
    {"type": "challenges_1000", "name": "Legendary Focus", "description": "Complete 1,000 challenges", "icon": "🏆", "rarity": "legendary", "category": "challenges"},
    # Perfect score milestones
    {"type": "perfect_5", "name": "Sharp Mind", "description": "Get 5 perfect scores", "icon": "✨", "rarity": "common", "category": "perfect"},
    {"type": "perfect_10", "name": "Precision Player", "description": "Get 10 perfect scores", "icon": "💫", "rarity": "common", "category": "perfect"},
    {"type": "perfect_25", "name": "Quality Focused", "description": "Get 25 perfect scores", "icon": "🌟", "rarity": "uncommon", "category": "perfect"},
    {"type": "perfect_50", "name": "Excellence Seeker", "description": "Get 50 perfect scores", "icon": "⚡", "rarity": "uncommon", "category": "perfect"},
    {"type": "perfect_100", "name": "Perfectionist", "description": "Get 100 perfect scores", "icon": "💎", "rarity": "rare", "category": "perfect"},
    {"type": "perfect_250", "name": "Flawless Execution", "description": "Get 250 perfect scores", "icon": "👑", "rarity": "epic", "category": "perfect"},
    {"type": "perfect_500", "name": "Perfect Legend", "description": "Get 500 perfect scores", "icon": "🌈", "rarity": "legendary", "category": "perfect"},
    # Daily streaks
    {"type": "streak_3", "name": "Three-Peat", "description": "Maintain a 3-day streak", "icon": "🔥", "rarity": "common", "category": "streak"},
    {"type": "streak_7", "name": "Week Warrior", "description": "Maintain a 7-day streak", "icon": "💪", "rarity": "uncommon", "category": "streak"},
    {"type": "streak_14", "name": "Fortnight Focus", "description": "Maintain a 14-day streak", "icon": "🗓️", "rarity": "uncommon", "category": "streak"},
    {"type": "streak_30", "name": "Monthly Master", "description": "Maintain a 30-day streak", "icon": "🏅", "rarity": "rare", "category": "streak"},
    {"type": "streak_60", "name": "Two Month Titan", "description": "Maintain a 60-day streak", "icon": "🥇", "rarity": "rare", "category": "streak"},
    {"type": "streak_90", "name": "Quarter Champion", "description": "Maintain a 90-day streak", "icon": "🎯", "rarity": "epic", "category": "streak"},
    {"type": "streak_180", "name": "Half Year Hero", "description": "Maintain a 180-day streak", "icon": "🦸", "rarity": "epic", "category": "streak"},
    {"type": "streak_365", "name": "Year of Focus", "description": "Maintain a 365-day streak", "icon": "🏆", "rarity": "legendary", "category": "streak"},
    # Consecutive perfect scores
    {"type": "hot_streak_3", "name": "Heating Up", "description": "3 perfect scores in a row", "icon": "🔥", "rarity": "common", "category": "hot_streak"},
    {"type": "hot_streak_5", "name": "On Fire", "description": "5 perfect scores in a row", "icon": "🌋", "rarity": "uncommon", "category": "hot_streak"},
    {"type": "hot_streak_10", "name": "Unstoppable", "description": "10 perfect scores in a row", "icon": "⚡", "rarity": "rare", "category": "hot_streak"},
    {"type": "hot_streak_20", "name": "Blazing", "description": "20 perfect scores in a row", "icon": "☄️", "rarity": "epic", "category": "hot_streak"},
    {"type": "hot_streak_50", "name": "Supernova", "description": "50 perfect scores in a row", "icon": "💥", "rarity": "legendary", "category": "hot_streak"},
    # Levels
    {"type": "level_2", "name": "Level Up!", "description": "Reach level 2", "icon": "📈", "rarity": "common", "category": "level"},
    {"type": "level_5", "name": "Rising Star", "description": "Reach level 5", "icon": "⭐", "rarity": "common", "category": "level"},
    {"type": "level_10", "name": "Double Digits", "description": "Reach level 10", "icon": "🌟", "rarity": "uncommon", "category": "level"},
    {"type": "level_15", "name": "Halfway There", "description": "Reach level 15", "icon": "🚀", "rarity": "uncommon", "category": "level"},
    {"type": "level_20", "name": "Expert Territory", "description": "Reach level 20", "icon": "🎯", "rarity": "rare", "category": "level"},
    {"type": "level_25", "name": "Almost Master", "description": "Reach level 25", "icon": "🏆", "rarity": "epic", "category": "level"},
    {"type": "level_30", "name": "Maximum Level", "description": "Reach level 30", "icon": "👑", "rarity": "legendary", "category": "level"},
    # Lifetime XP
    {"type": "xp_100", "name": "XP Starter", "description": "Earn 100 XP", "icon": "💫", "rarity": "common", "category": "xp"},
    {"type": "xp_500", "name": "XP Collector", "description": "Earn 500 XP", "icon": "✨", "rarity": "common", "category": "xp"},
    {"type": "xp_1000", "name": "XP Thousand", "description": "Earn 1,000 XP", "icon": "🌟", "rarity": "uncommon", "category": "xp"},
    {"type": "xp_5000", "name": "XP Hoarder", "description": "Earn 5,000 XP", "icon": "💎", "rarity": "uncommon", "category": "xp"},
    {"type": "xp_10000", "name": "XP Master", "description": "Earn 10,000 XP", "icon": "👑", "rarity": "rare", "category": "xp"},
    {"type": "xp_25000", "name": "XP Legend", "description": "Earn 25,000 XP", "icon": "🏆", "rarity": "epic", "category": "xp"},
    {"type": "xp_50000", "name": "XP God", "description": "Earn 50,000 XP", "icon": "⚡", "rarity": "legendary", "category": "xp"},
    # Skill mastery
    {"type": "focus_apprentice", "name": "Focus Apprentice", "description": "Focus skill reaches 25", "icon": "🎯", "rarity": "common", "category": "skill"},
    {"type": "focus_journeyman", "name": "Focus Journeyman", "description": "Focus skill reaches 50", "icon": "🎯", "rarity": "uncommon", "category": "skill"},
    {"type": "focus_expert", "name": "Focus Expert", "description": "Focus skill reaches 75", "icon": "🎯", "rarity": "rare", "category": "skill"},
    {"type": "focus_master", "name": "Focus Master", "description": "Focus skill reaches 100", "icon": "🎯", "rarity": "epic", "category": "skill"},
    {"type": "impulse_apprentice", "name": "Impulse Apprentice", "description": "Impulse control reaches 25", "icon": "🛡️", "rarity": "common", "category": "skill"},
    {"type": "impulse_journeyman", "name": "Impulse Journeyman", "description": "Impulse control reaches 50", "icon": "🛡️", "rarity": "uncommon", "category": "skill"},
    {"type": "impulse_expert", "name": "Impulse Expert", "description": "Impulse control reaches 75", "icon": "🛡️", "rarity": "rare", "category": "skill"},
    {"type": "impulse_master", "name": "Impulse Master", "description": "Impulse control reaches 100", "icon": "🛡️", "rarity": "epic", "category": "skill"},
    {"type": "distraction_apprentice", "name": "Shield Apprentice", "description": "Distraction resistance reaches 25", "icon": "🔰", "rarity": "common", "category": "skill"},
    {"type": "distraction_journeyman", "name": "Shield Journeyman", "description": "Distraction resistance reaches 50", "icon": "🔰", "rarity": "uncommon", "category": "skill"},
    {"type": "distraction_expert", "name": "Shield Expert", "description": "Distraction resistance reaches 75", "icon": "🔰", "rarity": "rare", "category": "skill"},
    {"type": "distraction_master", "name": "Shield Master", "description": "Distraction resistance reaches 100", "icon": "🔰", "rarity": "epic", "category": "skill"},
    {"type": "triple_master", "name": "Triple Threat", "description": "All three skills at 100", "icon": "🌈", "rarity": "legendary", "category": "skill"},
    # Challenge type specialists
    {"type": "breath_beginner", "name": "Deep Breather", "description": "Complete 5 breathing exercises", "icon": "🌬️", "rarity": "common", "category": "specialist"},
    {"type": "breath_master", "name": "Zen Master", "description": "Complete 25 breathing exercises", "icon": "🧘", "rarity": "uncommon", "category": "specialist"},
    {"type": "tracking_beginner", "name": "Eagle Eye", "description": "Complete 5 tracking exercises", "icon": "👁️", "rarity": "common", "category": "specialist"},
    {"type": "tracking_master", "name": "Hawk Vision", "description": "Complete 25 tracking exercises", "icon": "🦅", "rarity": "uncommon", "category": "specialist"},
    {"type": "tap_beginner", "name": "Quick Fingers", "description": "Complete 5 tap exercises", "icon": "👆", "rarity": "common", "category": "specialist"},
    {"type": "tap_master", "name": "Tap Virtuoso", "description": "Complete 25 tap exercises", "icon": "🎹", "rarity": "uncommon", "category": "specialist"},
    {"type": "stillness_beginner", "name": "Calm Mind", "description": "Complete 5 stillness exercises", "icon": "🧘‍♂️", "rarity": "common", "category": "specialist"},
    {"type": "stillness_master", "name": "Stone Buddha", "description": "Complete 25 stillness exercises", "icon": "🗿", "rarity": "uncommon", "category": "specialist"},
    {"type": "notification_blocker", "name": "Notification Blocker", "description": "Complete 10 notification exercises", "icon": "🔕", "rarity": "common", "category": "specialist"},
    {"type": "notification_immune", "name": "Notification Immune", "description": "Complete 50 notification exercises", "icon": "🛡️", "rarity": "rare", "category": "specialist"},
    # Time of day
    {"type": "early_bird", "name": "Early Bird", "description": "Complete a challenge before 7 AM", "icon": "🌅", "rarity": "uncommon", "category": "time"},
    {"type": "morning_person", "name": "Morning Person", "description": "Complete 10 sessions before 9 AM", "icon": "☀️", "rarity": "rare", "category": "time"},
    {"type": "night_owl", "name": "Night Owl", "description": "Complete a challenge after 10 PM", "icon": "🦉", "rarity": "uncommon", "category": "time"},
    {"type": "midnight_warrior", "name": "Midnight Warrior", "description": "Complete a challenge after midnight", "icon": "🌙", "rarity": "rare", "category": "time"},
    {"type": "weekend_warrior", "name": "Weekend Warrior", "description": "Practice on both Saturday and Sunday", "icon": "🗓️", "rarity": "uncommon", "category": "time"},
    {"type": "consistent_time", "name": "Consistent", "description": "Same practice hour for 7 days", "icon": "⏰", "rarity": "rare", "category": "time"},
    # Daily sessions
    {"type": "daily_3", "name": "Getting Started", "description": "Complete 3 daily sessions", "icon": "📆", "rarity": "common", "category": "session"},
    {"type": "daily_7", "name": "One Week Done", "description": "Complete 7 daily sessions", "icon": "📅", "rarity": "uncommon", "category": "session"},
    {"type": "daily_30", "name": "Monthly Warrior", "description": "Complete 30 daily sessions", "icon": "🗓️", "rarity": "rare", "category": "session"},
    {"type": "daily_100", "name": "Session Centurion", "description": "Complete 100 daily sessions", "icon": "🏛️", "rarity": "epic", "category": "session"},
    # Speed
    {"type": "quick_reflexes", "name": "Quick Reflexes", "description": "Complete challenge in <10s with 90+ score", "icon": "⚡", "rarity": "uncommon", "category": "speed"},
    {"type": "speed_demon", "name": "Speed Demon", "description": "5 challenges in <10s with 90+ score", "icon": "💨", "rarity": "rare", "category": "speed"},
    {"type": "lightning_fast", "name": "Lightning Fast", "description": "10 fast challenges with perfect score", "icon": "🌩️", "rarity": "epic", "category": "speed"},
    # Scores
    {"type": "high_scorer", "name": "High Scorer", "description": "Score 90+ on any challenge", "icon": "🎮", "rarity": "common", "category": "score"},
    {"type": "consistent_90", "name": "Consistently Great", "description": "10 challenges with 90+ score", "icon": "📊", "rarity": "uncommon", "category": "score"},
    {"type": "never_below_80", "name": "Above Average", "description": "20 consecutive challenges 80+", "icon": "📈", "rarity": "rare", "category": "score"},
    {"type": "score_collector", "name": "Score Collector", "description": "Total score reaches 10,000", "icon": "🧮", "rarity": "rare", "category": "score"},
    # Hearts
    {"type": "heart_saver", "name": "Heart Saver", "description": "Complete session without losing hearts", "icon": "❤️", "rarity": "uncommon", "category": "hearts"},
    {"type": "heart_collector", "name": "Heart Collector", "description": "Gain 10 hearts total", "icon": "💖", "rarity": "uncommon", "category": "hearts"},
    {"type": "heart_guardian", "name": "Heart Guardian", "description": "Maintain full hearts for 3 days", "icon": "💝", "rarity": "rare", "category": "hearts"},
    {"type": "comeback_king", "name": "Comeback King", "description": "Recover from 1 heart to full", "icon": "👑", "rarity": "rare", "category": "hearts"},
    # Special
    {"type": "explorer", "name": "Explorer", "description": "Try every challenge type", "icon": "🧭", "rarity": "rare", "category": "special"},
    {"type": "variety_seeker", "name": "Variety Seeker", "description": "5 different challenge types in one day", "icon": "🎨", "rarity": "uncommon", "category": "special"},
    {"type": "specialist", "name": "Specialist", "description": "Same challenge type 50 times", "icon": "🔬", "rarity": "rare", "category": "special"},
    {"type": "no_skip", "name": "No Shortcuts", "description": "Complete 10 sessions without skipping", "icon": "✅", "rarity": "uncommon", "category": "special"},
    {"type": "improvement", "name": "Personal Best", "description": "Beat your personal best score", "icon": "🏆", "rarity": "common", "category": "special"},
    {"type": "double_up", "name": "Double Up", "description": "Complete 2 sessions in one day", "icon": "✌️", "rarity": "uncommon", "category": "special"},
    {"type": "triple_threat", "name": "Triple Session", "description": "Complete 3 sessions in one day", "icon": "🔱", "rarity": "rare", "category": "special"},
    # Rare and legendary
    {"type": "flawless_week", "name": "Flawless Week", "description": "7 days of only perfect scores", "icon": "💎", "rarity": "epic", "category": "legendary"},
    {"type": "flawless_month", "name": "Flawless Month", "description": "30 days of only perfect scores", "icon": "🌟", "rarity": "legendary", "category": "legendary"},
    {"type": "centurion", "name": "Centurion", "description": "100 perfect scores in a row", "icon": "⚔️", "rarity": "legendary", "category": "legendary"},
    {"type": "true_master", "name": "True Master", "description": "Level 30, all skills 100, 365-day streak", "icon": "🌌", "rarity": "legendary", "category": "legendary"},
    {"type": "unscroll_legend", "name": "Unscroll Legend", "description": "1000 challenges, 500 perfect, level 30", "icon": "🔱", "rarity": "legendary", "category": "legendary"},
]

BADGES_BY_TYPE: dict[str, BadgeDefinition] = {
    entry["type"]: BadgeDefinition(**entry) for entry in BADGE_DEFINITIONS
}


def get_badge_definition(badge_type: str) -> BadgeDefinition | None:
    return BADGES_BY_TYPE.get(badge_type)


def get_badges_by_rarity(rarity: BadgeRarity | str) -> list[str]:
    rarity = BadgeRarity(rarity)
    return [d.type for d in BADGES_BY_TYPE.values() if d.rarity == rarity]


def get_total_badge_count() -> int:
    return len(BADGE_DEFINITIONS)
