from .activations import Activation, Passthrough, Logistic, Softmax, get_activation
from .losses import Loss, MeanSquaredError, CrossEntropy, SoftmaxCrossEntropy, get_loss
from .network import Network
from .config import TrainingConfig
from .datasets import ArrayDataset
from .mnist import ImageSet, LabelSet, MnistDataset
from .trainer import Trainer, one_hot

__version__ = "0.1.0"
