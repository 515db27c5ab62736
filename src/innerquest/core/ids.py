from typing import NewType

EventId = NewType('EventId', str)
QuestId = NewType('QuestId', str)
AchievementId = NewType('AchievementId', str)
PhaseId = NewType('PhaseId', int)
