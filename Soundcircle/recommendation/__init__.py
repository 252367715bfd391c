from .recommendation_system import RecommendationSystem, RecommendationMode
from .base import RecommenderBase
from .cold_start import ColdStartRecommender
from .hybrid_recommender import HybridRecommender
from .trending import TrendingEngine
from .compatibility import TasteCompatibility
from .config import EngineConfig
from .store import MusicStore, InMemoryStore
from .exceptions import SoundcircleError, StoreUnavailableError, RecommendationUnavailableError
from .dataloading import RecommendationDataManager
from .song_loader import SongLoader
from .user_loader import UserLoader
from .evaluation import RecommendationEvaluator
